from civic_market.models.base import Base  # noqa: F401

from civic_market.models.listing import Listing  # noqa: F401
from civic_market.models.comment import Comment  # noqa: F401
from civic_market.models.configuration_flag import ConfigurationFlag  # noqa: F401
