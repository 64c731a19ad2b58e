import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from farum_agent.app_config import load_json_config, parse_app_config, resolve_runtime_env
from farum_agent.bootstrap import bootstrap_runtime
from farum_agent.errors import ConfigurationError
from farum_agent.shell import ChatShell


async def main() -> None:
    load_dotenv()

    app = parse_app_config(load_json_config())
    env = resolve_runtime_env(app.provider_name)

    try:
        runtime = bootstrap_runtime(app, env)
    except ConfigurationError as ex:
        logger.error(str(ex))
        print(ex, file=sys.stderr)
        sys.exit(1)

    shell = ChatShell(
        runtime.conversation,
        runtime.journal,
        user_id=app.user_id,
        default_mode=app.default_mode,
    )

    print("farum-agent (type 'exit' to quit, '/help' for commands)")
    print(f"Provider: {app.provider_name} | Storage: {app.storage_backend} | Agents: {' -> '.join(runtime.orchestrator.stage_names)}")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()

    try:
        await shell.start()
        while True:
            try:
                user_input = input("you> ")
            except (EOFError, KeyboardInterrupt):
                break

            trimmed = user_input.strip()

            if trimmed in ("exit", "quit"):
                break

            if not trimmed:
                continue

            try:
                await shell.handle(trimmed)
                print()
            except Exception as ex:
                logger.error(f"Unhandled error: {ex}")
    finally:
        runtime.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
