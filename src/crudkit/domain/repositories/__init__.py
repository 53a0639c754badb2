"""Domain repository interfaces.

Repository is the abstract contract; UserContext supplies the acting
principal for audit stamping.  Concrete implementations live in
crudkit.infrastructure and are wired at the application boundary.
"""

from .base import Repository
from .user_context import StaticUserContext, UserContext

__all__ = [
    "Repository",
    "StaticUserContext",
    "UserContext",
]
