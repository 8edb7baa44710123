# boost_host/runners/hub_shell.py

from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional

from boost_host.core.client import HubClient
from boost_host.core.event_bus import Subscription
from boost_host.core.hub_runtime import build_runtime
from boost_host.core.settings import HubSettings
from boost_host.core.state import ControlMode
from boost_host.telemetry.models import DeviceState

USAGE = (
    "  Commands: connect | disconnect | status | led <color|index> |\n"
    "            drive f|b | turn l|r | stop | mode click|arcade |\n"
    "            motor <port> <sec> <power> | angle <port> <deg> <power> |\n"
    "            config drive|turn <factor> | watch on|off | ai start|stop | quit"
)


async def ainput(prompt: str = "") -> str:
    """
    Async-friendly input() so Ctrl-C is handled correctly.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: input(prompt))


def _print_connection(connected: bool) -> None:
    print(f"[CONN] {'connected' if connected else 'disconnected'}")


def format_device_state(state: DeviceState) -> str:
    ports = " ".join(
        f"{name}={info.action or '-'}/{info.angle}" for name, info in state.ports.items()
    )
    line = (
        f"connected={state.connected} rssi={state.rssi} "
        f"distance={state.distance}cm color={state.color or '-'} "
        f"tilt=({state.tilt.roll},{state.tilt.pitch}) ports[{ports}]"
    )
    if state.error:
        line += f" error={state.error!r}"
    return line


def _print_device_state(state: DeviceState) -> None:
    print(f"[HUB] {format_device_state(state)}")


class HubShell:
    """Line-oriented front end over a HubClient (one command per line)."""

    def __init__(self, client: HubClient) -> None:
        self.client = client
        self.mode = ControlMode.CLICK
        self._watch: Optional[Subscription] = None

    async def handle(self, line: str) -> bool:
        """Run one command line. Returns False when the shell should exit."""
        parts = line.strip().lower().split()
        if not parts:
            return True
        cmd, args = parts[0], parts[1:]
        client = self.client

        if cmd in ("quit", "exit", "q"):
            return False

        elif cmd == "connect":
            ok = await client.connect()
            if not ok:
                print(f"[Shell] Connect failed: {client.device_state.error}")

        elif cmd == "disconnect":
            await client.disconnect()

        elif cmd == "status":
            print(f"[Shell] {client.connection_state.value}, mode={self.mode.name.lower()}, "
                  f"control={client.control_data}")
            print(f"[Shell] {format_device_state(client.device_state)}")

        elif cmd == "led":
            if len(args) != 1:
                print("Usage: led <color>")
            else:
                # a color name or its numeric index
                color = int(args[0]) if args[0].isdigit() else args[0]
                await client.led(color)

        elif cmd == "drive":
            if len(args) != 1 or args[0] not in ("f", "b"):
                print("Usage: drive f|b")
            else:
                direction = 1 if args[0] == "f" else -1
                if self.mode == ControlMode.ARCADE:
                    await client.drive_continuous(direction)
                else:
                    await client.drive(direction)

        elif cmd == "turn":
            if len(args) != 1 or args[0] not in ("l", "r"):
                print("Usage: turn l|r")
            else:
                await client.turn(1 if args[0] == "r" else -1)

        elif cmd == "stop":
            await client.stop()

        elif cmd == "mode":
            if len(args) != 1 or args[0] not in ("click", "arcade"):
                print("Usage: mode click|arcade")
            else:
                self.mode = ControlMode[args[0].upper()]
                print(f"[Shell] Mode: {args[0]}")

        elif cmd in ("motor", "angle"):
            if len(args) != 3:
                print(f"Usage: {cmd} <port> <{'sec' if cmd == 'motor' else 'deg'}> <power>")
            else:
                try:
                    amount = float(args[1])
                    power = float(args[2])
                except ValueError:
                    print("Arguments must be numbers")
                else:
                    port = args[0].upper()
                    if cmd == "motor":
                        await client.motor_timed(port, amount, power)
                    else:
                        await client.motor_angle(port, amount, power)

        elif cmd == "config":
            if len(args) != 2 or args[0] not in ("drive", "turn"):
                print("Usage: config drive|turn <factor>")
            else:
                try:
                    factor = float(args[1])
                except ValueError:
                    print("Factor must be a number")
                else:
                    cfg = client.update_configuration({f"{args[0]}_finetune": factor})
                    print(f"[Shell] {cfg}")

        elif cmd == "watch":
            if args == ["on"]:
                if self._watch is None:
                    self._watch = client.on_device_info_change(_print_device_state)
            elif args == ["off"]:
                if self._watch is not None:
                    self._watch.unsubscribe()
                    self._watch = None
            else:
                print("Usage: watch on|off")

        elif cmd == "ai":
            if args == ["start"]:
                await client.start_ai()
            elif args == ["stop"]:
                await client.stop_ai()
            else:
                print("Usage: ai start|stop")

        else:
            print(f"[Shell] Unknown command: {line.strip()}")
            print(USAGE)

        return True


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive shell for a LEGO Boost hub")
    parser.add_argument("--profile", default="default", help="hub profile name")
    parser.add_argument("--record", action="store_true", help="record telemetry to JSONL")
    parser.add_argument("--connect", action="store_true", help="connect on startup")
    return parser


async def main(argv: Optional[List[str]] = None) -> None:
    args = build_arg_parser().parse_args(argv)

    settings = HubSettings.load(args.profile)
    if args.record:
        settings.recording.enabled = True

    runtime = await build_runtime(args.profile, settings=settings)
    client = runtime.client
    client.on_connection_change(_print_connection)

    shell = HubShell(client)

    print("")
    print("=== LEGO Boost Interactive Shell ===")
    print(USAGE)
    print("")

    try:
        if args.connect:
            await shell.handle("connect")
        while True:
            try:
                line = await ainput("boost> ")
            except (KeyboardInterrupt, EOFError):
                print("\n[Shell] Exiting...")
                break
            if not await shell.handle(line):
                print("[Shell] Exiting...")
                break
    finally:
        print("[Shell] Shutting down...")
        await runtime.close()
        print("[Shell] Done.")


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("[Shell] Force-quit.")


if __name__ == "__main__":
    run()
