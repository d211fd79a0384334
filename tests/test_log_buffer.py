import unittest

from rate_proxy.services.log_buffer import LogBuffer


class TestLogBuffer(unittest.TestCase):
    def test_oldest_entries_are_evicted(self):
        buffer = LogBuffer(capacity=3, echo=False)
        for i in range(5):
            buffer.append(f"event-{i}")

        messages = [entry.message for entry in buffer.read_all()]

        self.assertEqual(messages, ["event-2", "event-3", "event-4"])

    def test_lines_are_timestamped(self):
        buffer = LogBuffer(capacity=5, echo=False)
        buffer.append("fetch...")

        line = buffer.lines()[0]

        self.assertRegex(line, r"^\d{2}:\d{2}:\d{2} fetch\.\.\.$")

    def test_read_all_returns_copy(self):
        buffer = LogBuffer(capacity=5, echo=False)
        buffer.append("a")
        entries = buffer.read_all()
        entries.clear()

        self.assertEqual(len(buffer.read_all()), 1)


if __name__ == "__main__":
    unittest.main()
