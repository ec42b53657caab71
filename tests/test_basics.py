"""Basic unit tests for the component-bridge package."""

from component_bridge import (
    BridgeClosedError,
    BridgeConfig,
    BridgeError,
    ComponentBridge,
    InboundAction,
    LostCorrelationError,
    MalformedPayloadError,
    OutboundAction,
    __version__,
)


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert ComponentBridge is not None
    assert BridgeConfig is not None


def test_error_hierarchy():
    assert issubclass(LostCorrelationError, BridgeError)
    assert issubclass(MalformedPayloadError, BridgeError)
    assert issubclass(BridgeClosedError, BridgeError)


def test_error_attributes():
    err = BridgeError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    lost = LostCorrelationError("abc")
    assert lost.code == "lost_correlation"
    assert lost.message_id == "abc"
    assert lost.details == {"message_id": "abc"}

    assert BridgeClosedError().code == "bridge_closed"


def test_action_constants():
    assert OutboundAction.SAVE_ITEMS == "save-items"
    assert OutboundAction.SET_COMPONENT_DATA == "set-component-data"
    assert InboundAction.COMPONENT_REGISTERED == "component-registered"
    assert InboundAction.THEMES == "themes"


def test_config_defaults():
    cfg = BridgeConfig()
    assert cfg.coalesced_saving is True
    assert cfg.coalesced_saving_delay == 0.25
    assert cfg.accepts_themes is True
    assert cfg.logging_enabled is False
    assert cfg.pending_call_max_age == 600.0
