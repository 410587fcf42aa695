from src.marketplace.infrastructure.http.agent_trigger_client import HttpAgentTrigger

__all__ = ["HttpAgentTrigger"]
