import logging
from django.core.cache import cache
from django.conf import settings
from redis.exceptions import ConnectionError

logger = logging.getLogger(__name__)


def check_cache_connection(sender, **kwargs):
    """
    Check that the cache backing the unread-count counters is reachable.
    """
    logger.info("Checking cache connection...")

    try:
        test_key = "cache_connection_test"
        test_value = "working"
        cache.set(test_key, test_value, 60)
        retrieved = cache.get(test_key)

        if retrieved == test_value:
            logger.info("Cache read/write test successful")
        else:
            logger.warning("Cache read/write test failed")

        cache.delete(test_key)

    except ConnectionError as e:
        logger.error("Redis connection error: %s", e)
        logger.error("Redis connection URL: %s", settings.CACHES["default"].get("LOCATION"))
        logger.error("Please make sure Redis is running and the connection settings are correct")
