"""Metatron-AI.

This package contains the tool gateway used by the Metatron personal assistant
to let a language model act on the user's behalf without escaping a narrow,
pre-declared policy.

High-level architecture
-----------------------

A conversation turn may contain any number of *tool calls* emitted by the
model. Each call flows through the same pipeline:

- **Capability registry**: decides which tools exist for this turn. Some tools
  are always offered, others only when a credential, generation settings or a
  chat/message identity is available.
- **Policy**: a pure allow/deny decision over a data-store operation, based on
  the operation kind and the tier of the target collection.
- **Executor**: runs an allowed operation against the store and wraps the
  outcome in a uniform envelope.
- **Notebook**: the persisted memory/schema record that the model reads and
  mutates across turns.

The model only ever sees strings. Every tool returns a JSON document that is
either a success payload or a single ``error`` field.

Core subpackages
----------------

- ``metatron_ai.core``: configuration and logging.
- ``metatron_ai.agent_core``: policy, executors, capabilities, notebook,
  integrations (web search, image generation) and store adapters.
"""
