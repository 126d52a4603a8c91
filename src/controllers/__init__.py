from .command_controller import CommandController

__all__ = [
    'CommandController',
]
