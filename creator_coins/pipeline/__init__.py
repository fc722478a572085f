from creator_coins.pipeline.deployment import CoinDeploymentPipeline

__all__ = ["CoinDeploymentPipeline"]
