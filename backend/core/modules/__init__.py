from .tale_generator import TaleGenerator

__all__ = ["TaleGenerator"]
