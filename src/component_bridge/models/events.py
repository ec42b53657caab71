"""
Action vocabulary of the component protocol.
"""


class OutboundAction:
    """Actions the component sends to the host."""

    REQUEST_PERMISSIONS = "request-permissions"
    SET_SIZE = "set-size"
    STREAM_ITEMS = "stream-items"
    STREAM_CONTEXT_ITEM = "stream-context-item"
    SELECT_ITEM = "select-item"
    CREATE_ITEM = "create-item"
    CREATE_ITEMS = "create-items"
    ASSOCIATE_ITEM = "associate-item"
    DEASSOCIATE_ITEM = "deassociate-item"
    CLEAR_SELECTION = "clear-selection"
    DELETE_ITEMS = "delete-items"
    SAVE_ITEMS = "save-items"
    SET_COMPONENT_DATA = "set-component-data"


class InboundAction:
    """Actions the host sends to the component. Replies carry no action."""

    COMPONENT_REGISTERED = "component-registered"
    THEMES = "themes"
