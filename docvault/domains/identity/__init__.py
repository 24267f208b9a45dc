from docvault.domains.identity.entities import Principal, User

__all__ = [
    "Principal",
    "User"
]
