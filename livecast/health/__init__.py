from livecast.health.router import router


__all__ = ["router"]
