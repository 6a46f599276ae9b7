from .gateway import SCENARIO_STATUSES, MockGatewayAdapter

__all__ = ["SCENARIO_STATUSES", "MockGatewayAdapter"]
