"""Well-known storage keys shared by the driver and customer apps."""


class StorageKey:
    DRIVER_JOBS = "driver_jobs"
    DRIVER_ROUTES = "driver_routes"
    CUSTOMER_REQUESTS = "customer_requests"
    CUSTOMER_SCHEDULE = "customer_schedule"
    USER_PROFILE = "user_profile"
    OFFLINE_QUEUE = "offline_queue"
    APP_SETTINGS = "app_settings"


WELL_KNOWN_KEYS: tuple[str, ...] = (
    StorageKey.DRIVER_JOBS,
    StorageKey.DRIVER_ROUTES,
    StorageKey.CUSTOMER_REQUESTS,
    StorageKey.CUSTOMER_SCHEDULE,
    StorageKey.USER_PROFILE,
    StorageKey.OFFLINE_QUEUE,
    StorageKey.APP_SETTINGS,
)

SCOPE_SEPARATOR = ":"


def scoped_key(base: str, scope: str) -> str:
    """Key for one driver's or customer's copy of a well-known dataset."""
    return f"{base}{SCOPE_SEPARATOR}{scope}"


def base_key(key: str) -> str:
    return key.split(SCOPE_SEPARATOR, 1)[0]
