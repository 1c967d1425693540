# Utilities Package
"""유틸리티 함수"""

from metasearch.utils.user_agent import USER_AGENTS, random_user_agent

__all__ = [
    "USER_AGENTS",
    "random_user_agent",
]
