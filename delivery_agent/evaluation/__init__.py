from delivery_agent.evaluation.metrics import MetricsSnapshot, TurnMetrics

__all__ = ["TurnMetrics", "MetricsSnapshot"]
