import ipaddress
import unittest
from itertools import count
from typing import List

from flowsniff import FlowAggregator, FlowRecord, Frame, MacAddress, Protocol

MAC_A = MacAddress(b"\x00\x00\x00\x00\x00\x0a")
MAC_B = MacAddress(b"\x00\x00\x00\x00\x00\x0b")
MAC_C = MacAddress(b"\x00\x00\x00\x00\x00\x0c")
MAC_D = MacAddress(b"\x00\x00\x00\x00\x00\x0d")


def _frame(
    src_mac: MacAddress,
    dst_mac: MacAddress,
    size: int,
    *,
    src_ip: str = "10.0.0.1",
    dst_ip: str = "10.0.0.2",
    protocol: Protocol = Protocol.TCP,
    fill: bytes = b"x",
) -> Frame:
    return Frame(
        src_mac=src_mac,
        dst_mac=dst_mac,
        protocol=protocol,
        src_ip=ipaddress.ip_address(src_ip),
        dst_ip=ipaddress.ip_address(dst_ip),
        payload=fill * size,
    )


class RecordingListener:
    def __init__(self) -> None:
        self.records: List[FlowRecord] = []

    def on_flow_generated(self, record: FlowRecord) -> None:
        self.records.append(record)


class FlowAggregatorTest(unittest.TestCase):
    def setUp(self) -> None:
        self.listener = RecordingListener()
        ticks = count(1_000)
        self.aggregator = FlowAggregator(self.listener, clock=lambda: next(ticks))

    def test_group_closes_when_mac_pair_changes(self) -> None:
        frames = [_frame(MAC_A, MAC_B, 10), _frame(MAC_A, MAC_B, 20), _frame(MAC_C, MAC_D, 5)]
        emitted = [self.aggregator.add_frame(frame) for frame in frames]

        self.assertIsNone(emitted[0])
        self.assertIsNone(emitted[1])
        record = emitted[2]
        self.assertIsNotNone(record)
        self.assertEqual(record.bytes, 30)
        self.assertEqual(record.packets, 2)
        self.assertEqual(record.src_mac, MAC_A)
        self.assertEqual(record.dst_mac, MAC_B)
        self.assertEqual(self.listener.records, [record])
        # The C->D group stays open until another frame breaks it.
        self.assertTrue(self.aggregator.is_open)
        self.assertEqual(self.aggregator.pending_frames, 1)

    def test_record_count_matches_closed_runs(self) -> None:
        pairs = [(MAC_A, MAC_B)] * 2 + [(MAC_C, MAC_D)] + [(MAC_A, MAC_B)] * 3 + [(MAC_B, MAC_A)]
        for src, dst in pairs:
            self.aggregator.add_frame(_frame(src, dst, 1))

        # Four maximal runs, the trailing one is still open.
        self.assertEqual([r.packets for r in self.listener.records], [2, 1, 3])
        self.assertEqual(self.aggregator.finished_flow_count, 3)

    def test_addresses_come_from_breaking_frame(self) -> None:
        self.aggregator.add_frame(_frame(MAC_A, MAC_B, 4, src_ip="10.0.0.1", dst_ip="10.0.0.2"))
        record = self.aggregator.add_frame(
            _frame(MAC_C, MAC_D, 4, src_ip="192.0.2.7", dst_ip="2001:db8::9", protocol=Protocol.UDP)
        )

        self.assertEqual(record.src_ip, ipaddress.ip_address("192.0.2.7"))
        self.assertEqual(record.dst_ip, ipaddress.ip_address("2001:db8::9"))
        # Protocol and MACs still describe the closed group.
        self.assertIs(record.protocol, Protocol.TCP)
        self.assertEqual(record.src_mac, MAC_A)

    def test_grouping_ignores_ip_and_protocol(self) -> None:
        self.aggregator.add_frame(_frame(MAC_A, MAC_B, 3, src_ip="10.0.0.1"))
        self.aggregator.add_frame(_frame(MAC_A, MAC_B, 4, src_ip="10.0.0.9", protocol=Protocol.UDP))
        record = self.aggregator.add_frame(_frame(MAC_C, MAC_D, 1))

        self.assertEqual(record.packets, 2)
        self.assertIs(record.protocol, Protocol.TCP)

    def test_raw_payload_is_concatenated_in_order(self) -> None:
        self.aggregator.add_frame(_frame(MAC_A, MAC_B, 2, fill=b"a"))
        self.aggregator.add_frame(_frame(MAC_A, MAC_B, 3, fill=b"b"))
        record = self.aggregator.add_frame(_frame(MAC_C, MAC_D, 1))

        self.assertEqual(record.raw, b"aabbb")
        self.assertEqual(record.bytes, len(record.raw))

    def test_timestamp_is_time_of_finalisation(self) -> None:
        self.aggregator.add_frame(_frame(MAC_A, MAC_B, 1))
        first = self.aggregator.add_frame(_frame(MAC_C, MAC_D, 1))
        second = self.aggregator.add_frame(_frame(MAC_A, MAC_B, 1))

        self.assertEqual(first.timestamp, 1_000)
        self.assertEqual(second.timestamp, 1_001)

    def test_finalize_flushes_trailing_group(self) -> None:
        self.aggregator.add_frame(_frame(MAC_A, MAC_B, 7, src_ip="10.0.0.3", dst_ip="10.0.0.4"))
        self.aggregator.add_frame(_frame(MAC_A, MAC_B, 8, src_ip="10.0.0.5", dst_ip="10.0.0.6"))

        record = self.aggregator.finalize()

        self.assertIsNotNone(record)
        self.assertEqual(record.bytes, 15)
        self.assertEqual(record.packets, 2)
        self.assertEqual(record.src_ip, ipaddress.ip_address("10.0.0.5"))
        self.assertEqual(record.dst_ip, ipaddress.ip_address("10.0.0.6"))
        self.assertFalse(self.aggregator.is_open)
        self.assertEqual(self.listener.records, [record])

    def test_finalize_on_empty_aggregator_is_noop(self) -> None:
        self.assertIsNone(self.aggregator.finalize())
        self.assertIsNone(self.aggregator.add_frame(None))
        self.assertEqual(self.listener.records, [])

    def test_breaking_frame_survives_listener_failure(self) -> None:
        class FailingListener:
            def on_flow_generated(self, record: FlowRecord) -> None:
                raise OSError("disk full")

        aggregator = FlowAggregator(FailingListener(), clock=count(1).__next__)
        aggregator.add_frame(_frame(MAC_A, MAC_B, 3))

        with self.assertRaises(OSError):
            aggregator.add_frame(_frame(MAC_C, MAC_D, 4))

        self.assertEqual(aggregator.pending_frames, 1)
        self.assertEqual(aggregator.finished_flow_count, 1)

    def test_records_are_immutable(self) -> None:
        self.aggregator.add_frame(_frame(MAC_A, MAC_B, 1))
        record = self.aggregator.add_frame(_frame(MAC_C, MAC_D, 1))

        with self.assertRaises(AttributeError):
            record.bytes = 99  # type: ignore[misc]


if __name__ == "__main__":  # pragma: no cover - convenience
    unittest.main()
