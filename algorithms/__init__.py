from .math_tools import MathTools
from .training_load import TrainingLoad

__all__ = ["MathTools", "TrainingLoad"]
