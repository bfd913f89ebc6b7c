from .build import SlackBuildResult, build_slack

__all__ = ["SlackBuildResult", "build_slack"]
