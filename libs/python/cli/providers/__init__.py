"""CLI providers for common service dependencies.

Each provider module exports Typer parameter type aliases and a helper that
turns the parsed values into a ready-to-use resource.

Available providers:
- logging: Logging and OpenTelemetry setup
- rabbitmq: RabbitMQ connection with bounded startup retry
"""
