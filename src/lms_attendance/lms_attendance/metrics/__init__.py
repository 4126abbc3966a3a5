from .calculator import can_miss, percent, required, required_iterative

__all__ = ["percent", "required", "required_iterative", "can_miss"]
