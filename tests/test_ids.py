import threading
import unittest

from farum_agent.ids import IdGenerator, format_ns


class IdGeneratorTests(unittest.TestCase):
    def test_format(self) -> None:
        self.assertEqual("20231114221320.000000042", format_ns(1_700_000_000_000_000_042))

    def test_frozen_clock_still_increases(self) -> None:
        ids = IdGenerator(clock_ns=lambda: 1_700_000_000_000_000_000)
        values = [ids.new_id() for _ in range(3)]
        self.assertEqual(
            ["20231114221320.000000000", "20231114221320.000000001", "20231114221320.000000002"],
            values,
        )

    def test_clock_going_backwards(self) -> None:
        ticks = iter([100, 50, 200])
        ids = IdGenerator(clock_ns=lambda: next(ticks))
        self.assertEqual([100, 101, 200], [ids.next_ns() for _ in range(3)])

    def test_unique_across_threads(self) -> None:
        ids = IdGenerator(clock_ns=lambda: 0)
        seen: list[str] = []
        lock = threading.Lock()

        def worker() -> None:
            local = [ids.new_id() for _ in range(200)]
            with lock:
                seen.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(800, len(set(seen)))


if __name__ == "__main__":
    unittest.main()
