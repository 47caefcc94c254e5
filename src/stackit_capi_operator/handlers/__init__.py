"""Handler modules for CRD resources."""

# Import handlers to register them - all handlers register themselves via @kopf decorators
from . import shared  # noqa: F401
from . import stackitcluster  # noqa: F401
from . import stackitmachine  # noqa: F401
