from .redis_client import RedisClient

__all__ = ["RedisClient"]
