"""Launch the EchoTasks API with uvicorn.

Environment:
    ECHO_TASKS_HOST    bind address (default 0.0.0.0)
    ECHO_TASKS_PORT    port (default 8000)
    ECHO_TASKS_RELOAD  "1" to restart on source changes while developing
"""

import os

import uvicorn

from src.echo_tasks.config import Config
from src.echo_tasks.logger import resolve_level


def server_options(config: Config) -> dict:
    reload = os.getenv("ECHO_TASKS_RELOAD", "0").strip().lower() in ("1", "true", "yes")
    options = {
        "host": os.getenv("ECHO_TASKS_HOST", "0.0.0.0"),
        "port": int(os.getenv("ECHO_TASKS_PORT", "8000")),
        "log_level": resolve_level(config.log_level),
        "reload": reload,
    }
    if reload:
        options["reload_dirs"] = ["src"]
    return options


def main() -> None:
    uvicorn.run("src.server.app:app", **server_options(Config.from_yaml()))


if __name__ == "__main__":
    main()
