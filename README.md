# firedbproxy

Building blocks for a proxy that speaks the Redis serialization protocol
(RESP): a RESP encoder and decoder, buffered readers and writers, small
concurrency helpers, and tracking of hot keys, big keys and slow queries.

The package needs Python 3.10 or later and has no third-party
dependencies. Install the `test` extra to run the tests with pytest.

## Modules

- `firedbproxy.codis` – the protocol layer:
  - `resp`: the `Resp` value and the `RespType` enum, `type_name`, and the
    constructors `new_string`, `new_error`, `new_errorf`, `new_int`,
    `new_bulk_bytes` and `new_array`.
  - `decoder`: `Decoder` (`decode`, `decode_multi_bulk`), `decode`,
    `decode_from_bytes`, `decode_multi_bulk_from_bytes` and `btoi64`.
    Malformed input raises `ProtocolError`; once a decoder has failed,
    every later call raises again.
  - `encoder`: `Encoder` (`encode`, `encode_multi_bulk`, `flush`),
    `encode`, `encode_to_bytes` and `itoa`.
  - `bufio`: buffered `Reader` (`read`, `read_byte`, `peek_byte`,
    `read_slice`, `read_bytes`, `read_full`) and `Writer` (`write`,
    `write_byte`, `write_string`, `flush`) over any binary stream, with
    `BufferFullError`, `NoProgressError` and `ShortWriteError`. Errors
    from the stream are sticky.
  - `atomics`: `AtomicInt64` (a lock-guarded signed 64-bit integer that
    wraps around) and `AtomicBool`.
  - `future`: `Future`, a wait group that gathers one keyed value per
    finished task.
- `firedbproxy.monitor` – key monitoring:
  - `core`: `Monitor` with its settings `HotKeyConf`, `BigKeyConf` and
    `SlowQueryConf`.
  - `statistics`: `HotKeyStatistics`, `BigKeyStatistics` and
    `SlowQueryStatistics` deduplicate and rank collected records;
    `resp_to_string` renders a command's arguments.
  - `netstat`: network interface byte counters.

## Encoding and decoding RESP

```python
from firedbproxy.codis.resp import new_array, new_bulk_bytes
from firedbproxy.codis.encoder import encode_to_bytes
from firedbproxy.codis.decoder import decode_from_bytes, decode_multi_bulk_from_bytes

wire = encode_to_bytes(new_array([new_bulk_bytes(b"GET"), new_bulk_bytes(b"foo")]))
# b"*2\r\n$3\r\nGET\r\n$3\r\nfoo\r\n"

resp = decode_from_bytes(wire)
assert resp.is_array()
assert [item.value for item in resp.array] == [b"GET", b"foo"]

# Inline commands are accepted as well.
command = decode_multi_bulk_from_bytes(b"SET key value\r\n")
assert [item.value for item in command] == [b"SET", b"key", b"value"]
```

`Decoder` and `Encoder` take any binary stream (or an existing `Reader` /
`Writer`) and an optional buffer size, 8192 bytes by default.

## Monitoring

```python
from datetime import datetime, timedelta
from firedbproxy.monitor.core import BigKeyConf, HotKeyConf, Monitor, SlowQueryConf
from firedbproxy.monitor.statistics import BigKeyStatistics

mon = Monitor(
    HotKeyConf(monitor_job_lifetime=20, monitor_job_interval=60, second_hot_threshold=500),
    BigKeyConf(key_max_bytes=1024, value_max_bytes=1 << 20),
    SlowQueryConf(slow_query_time_threshold=100, max_list_size=64),
)

mon.put_big_key("user:1", 2 << 20)          # True: value too large
stats = BigKeyStatistics(mon.get_big_key_data(), threshold=10)

start = datetime.now()
mon.is_slow_query([b"KEYS", b"*"], start, start + timedelta(milliseconds=250))
queries, count = mon.get_slow_query_data()   # returns and clears the records
```

- Hot keys: `is_should_put_hot_key` counts a request and tells whether a
  sampling window is open; `put_hot_key` then records the key.
  `run_hot_key_cycle` runs one window and returns the keys whose rate
  exceeded `second_hot_threshold`, storing them in
  `hot_key_monitor_data`. `begin_monitor_hot_key` runs cycles in a
  background thread and `stop` ends it. LRU sizes are clamped to 128–1024.
- Big keys: `put_big_key` records a key whose name or value size reaches
  the configured limit; `get_big_key_data` returns the records, oldest
  first, and clears them.
- Slow queries: `is_slow_query` records a command that took at least the
  threshold in milliseconds, up to `max_list_size` entries;
  `get_slow_query_data` returns them with their count and clears them.

`netstat.detect_interface` finds the interface of the default IPv4 route
by running `ip -o -4 route show to default`, falling back to the
`MSP_ETH_INTERFACE_NAME` environment variable or `eth0`.
`current_network_stat_input_byte` and `current_network_stat_output_byte`
read `rx_bytes` and `tx_bytes` under `/sys/class/net/<interface>/statistics/`
and return 0 when the files cannot be read.

## What this package does not do

- It has no socket connection wrapper: reading and writing RESP over a
  network is left to the caller, who passes a stream to `Decoder` and
  `Encoder`.
- It does not publish metrics: there is no metrics registry or HTTP
  endpoint. The statistics classes produce the figures; serving them is up
  to the caller.
- It does not load a proxy configuration file; the monitor settings are
  plain dataclasses filled in by the caller.
- It is not a proxy server and has no command-line program.