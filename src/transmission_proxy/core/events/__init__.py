"""Application lifecycle events."""

from transmission_proxy.core.events.lifespan import init_services, lifespan, shutdown_services


__all__ = ["init_services", "lifespan", "shutdown_services"]
