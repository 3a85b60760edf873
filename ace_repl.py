import logging
import os
import sys

from ace.ace_config import load_config
from ace.ace_host import ConsoleSource, Server
from ace.ace_plugin import ACE, VERSION


def main():
    """Run an interactive console against a local server, as its operator."""
    config_path = sys.argv[1] if len(sys.argv) > 1 else os.environ.get("ACE_CONFIG")
    config = load_config(config_path)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    server = Server("console")
    plugin = ACE(server, config)
    plugin.on_server_starting()
    source = ConsoleSource()
    server.connect(source)

    eval_alias = config.aliases("eval")[0]
    print(f"ACE console v{VERSION}")
    print(f"Lines are evaluated as '{eval_alias} <line>'; start a line with '/' to run any command.")
    print("Type 'exit' or press Ctrl+D to quit.")

    while True:
        try:
            line = input(">> ")
        except EOFError:
            print("\nExiting.")
            break
        if line.strip() == "exit":
            break
        if line.startswith("/"):
            server.command_manager.process(source, line[1:])
        else:
            server.command_manager.process(source, f"{eval_alias} {line}")
    server.disconnect(source)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
