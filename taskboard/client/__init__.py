from taskboard.client.board import MoveRejected, OptimisticBoard

__all__ = ["MoveRejected", "OptimisticBoard"]
