"""Version control backend."""

from pipehub.scm.git import Credentials, GitRepository, PullResult, Ref, clone, config_get

__all__ = ["Credentials", "GitRepository", "PullResult", "Ref", "clone", "config_get"]
