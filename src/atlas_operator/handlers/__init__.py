"""Handler modules for Atlas resources."""

# Import handlers to register them - all handlers register themselves via @kopf decorators
from . import ipaccesslist  # noqa: F401
from . import serviceaccount  # noqa: F401
