# Role: Dependency providers for the API layer. Config is read from the environment once; a fresh client/runner
# is built per request from it. Tests swap these via app.dependency_overrides.

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from langflow_proxy.config import LangflowConfig, langflow_config_from_env
from langflow_proxy.core.flow_runner import FlowRunner
from langflow_proxy.tools.langflow_client import LangflowClient


@lru_cache(maxsize=1)
def get_langflow_config() -> LangflowConfig:
    return langflow_config_from_env()


def get_flow_runner(config: LangflowConfig = Depends(get_langflow_config)) -> FlowRunner:
    return FlowRunner(LangflowClient(config))
