"""Configuration and logging shared by the gateway."""
