"""Expert inference package."""

from knowhub.core.experts.expert_inference import ExpertInference

__all__ = ["ExpertInference"]
