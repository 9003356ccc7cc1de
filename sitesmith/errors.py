# python
"""
sitesmith/errors.py
Error taxonomy shared by the tree algorithms, the workspace and the collaborators.
"""


class SitesmithError(Exception):
    pass


class CycleDetected(SitesmithError):
    """A parent walk revisited a node, or a move would make a node its own ancestor."""


class MalformedAction(SitesmithError):
    """An edit action (or imported path) that cannot be applied to the tree."""


class MissingCollaboratorResponse(SitesmithError):
    """The generation or edit collaborator failed or returned an unusable payload."""


class NodeNotFound(SitesmithError, KeyError):
    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"no node with id {self.node_id!r}"


class InvalidNode(SitesmithError):
    """Bad name, or a parent that is not a folder."""


class RequestInFlight(SitesmithError):
    """A chat edit was submitted while another one is still outstanding."""
