"""Model registry: importing this module registers every table on Base.metadata."""

from api.database import Base  # noqa: F401

from api.models.company import Company  # noqa: F401
from api.models.project import Project  # noqa: F401
from api.models.phase import Phase, Category  # noqa: F401
from api.models.vendor import Vendor  # noqa: F401
from api.models.item import Item  # noqa: F401
from api.models.purchase import Purchase  # noqa: F401
