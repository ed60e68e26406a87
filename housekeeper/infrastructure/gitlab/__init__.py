from housekeeper.infrastructure.gitlab.gitlab_client import GitLabClient

__all__ = ["GitLabClient"]
