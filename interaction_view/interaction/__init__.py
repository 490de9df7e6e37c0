from .intents import ActionType, InteractionRequest

__all__ = ['ActionType', 'InteractionRequest']
