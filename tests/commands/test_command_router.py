import asyncio
import unittest

from farum_agent.commands.router import CommandRouter, parse_limit


class CommandRouterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calls: list[tuple[str, str]] = []

        async def on_help() -> None:
            self.calls.append(("help", ""))

        def recorder(kind: str):
            async def handler(command: str) -> None:
                self.calls.append((kind, command))
            return handler

        self.router = CommandRouter(
            on_help=on_help,
            on_session=recorder("session"),
            on_history=recorder("history"),
            on_journal=recorder("journal"),
            on_unknown=lambda command: self.calls.append(("unknown", command)),
        )

    def test_plain_text_is_not_a_command(self) -> None:
        self.assertFalse(asyncio.run(self.router.try_handle("hello /help")))
        self.assertEqual([], self.calls)

    def test_routes_each_command(self) -> None:
        for line in ("/help", " /session new deep_dive ", "/history 5", "/journal", "/nope"):
            self.assertTrue(asyncio.run(self.router.try_handle(line)))

        self.assertEqual(
            [
                ("help", ""),
                ("session", "/session new deep_dive"),
                ("history", "/history 5"),
                ("journal", "/journal"),
                ("unknown", "/nope"),
            ],
            self.calls,
        )


class ParseLimitTests(unittest.TestCase):
    def test_missing_argument_uses_default(self) -> None:
        self.assertEqual(20, parse_limit(["/session", "list"], 2, 20))

    def test_numeric_argument(self) -> None:
        self.assertEqual(3, parse_limit(["/history", "3"], 1, 0))

    def test_non_numeric_argument(self) -> None:
        self.assertIsNone(parse_limit(["/history", "all"], 1, 0))


if __name__ == "__main__":
    unittest.main()
