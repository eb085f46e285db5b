# ytdatanode

Building blocks for a storage data node in a distributed storage network:
encoding helpers, address bookkeeping, spot checks, counters and queues for
shard rebuilding, comparison of held shards against a super node's list, and
a restricted remote debugging channel.

## Modules

- `ytdatanode.base58`: `b58encode`, `b58decode` (raises `ValueError` on
  empty or invalid input), `libp2p_key_to_eos_key` (prefixes the first 32
  key bytes with `0x80` and re-encodes) and `ids_to_string` (comma-joined
  base58 forms).
- `ytdatanode.paths`: `get_ytfs_path` (the `ytfs_path` environment variable,
  otherwise `~/YTFS`), `get_config_path`, `get_current_user_home`,
  `path_exists`, `open_log_file` (append mode in the storage directory),
  `is_public_ip` (false for loopback, link-local, the private IPv4 ranges and
  every non-IPv4 address), and `read_line` / `read_string_line` for reading
  one chunk from a stream.
- `ytdatanode.relay`: `RelayManager` holds the relay address a node
  advertises; `update_addr` strips any `/p2p-...` suffix and splits the rest
  into a peer id and transport addresses (`split_p2p_addr`), raising
  `RelayAddrError` for a missing or malformed address. `ping` clears the
  relay.
- `ytdatanode.runtime_status`: `RuntimeStatus.update()` reads per-CPU load,
  average CPU load and memory use in whole percent through psutil.
- `ytdatanode.storage_node`: the `Owner` dataclass, `format_tcp_addr`, and
  `AddrsManager`, which combines the host's addresses with the public IP
  (reading the `nat_port` and, on lookup failure, `local_host_ip`
  environment variables) and caches the result for `ttl` seconds.
- `ytdatanode.spot_check`: `SpotChecker` runs a handler over every
  `SpotCheckTask` with ten workers, retries a failing task five times and
  collects the ids that still fail in `invalid_node_list`.
- `ytdatanode.netstat`: `parse_net_dev` sums received and transmitted bytes
  over all interfaces; `get_traffic("R" | "T", path)` reads them from
  `/proc/net/dev`, returning 0 when it cannot.
- `ytdatanode.debug_tools`: `verify` checks an RSA PKCS#1 v1.5 MD5 signature
  of the fixed debug message against a PEM public key you supply;
  `handle_download` uploads one of `index.db`, `config.json` or `output.log`
  (optionally gzipped by `compress`) by HTTP POST, raising
  `PermissionDenied` otherwise; `start_remote_debug` connects to a server and
  answers lines with the output of `ls`, `cat`, `head`, `tail` or `echo` run
  in the storage directory (`run_debug_command`).
- `ytdatanode.recover_counters`: `RecoverCounters` keeps named, lock-guarded
  counters; `stat()` returns a frozen `RecoverStat` whose `to_dict()` uses
  the reporting names.
- `ytdatanode.recover_tasks`: `TaskQueue` (bounded, drops when full),
  `queue_task_list` (skips everything once the expiry time has passed),
  `sn_id_from_task`, `bytes_to_int64`, `classify_task`, `group_replies`,
  `is_conflict_error`, `compute_pool_size` and the resizable
  `ConcurrencyPool`.
- `ytdatanode.slice_compare`: `KeyValueStore`, a byte-keyed store kept in an
  SQLite file, and `SliceComparer`, which keeps its stores and index files
  under `<base_dir>/gc`, matches super-node hashes against pending records
  (raising `SliceMissingError` for a hash the node lacks) and moves records
  left unmatched for 1200 seconds to a deletion store after three
  comparisons.
- `ytdatanode.schedule`: `parse_address_book` (the `"go"` or `"java"` form
  of the active node list), `fetch_address_book` (returns `[]` if the server
  cannot be reached) and `nodes_for_round`, which picks the nodes numbered
  from `start_dn` on whose number modulo `times` equals the round.

## Installation

Install the package with pip from a checkout of this repository; the tests
need the `test` extra.

## Examples

```python
from ytdatanode.base58 import b58encode, b58decode

text = b58encode(b"hello")      # "Cn8eVZg"
assert b58decode(text) == b"hello"
```

```python
from ytdatanode.paths import is_public_ip

is_public_ip("10.0.0.1")        # False
is_public_ip("8.8.8.8")         # True
```

```python
from ytdatanode.relay import RelayManager

relay = RelayManager()
relay.update_addr("/ip4/203.0.113.5/tcp/9001/p2p/QmTestPeer")
relay.peer                      # ("QmTestPeer", ["/ip4/203.0.113.5/tcp/9001"])
```

```python
from ytdatanode.spot_check import SpotChecker, SpotCheckTask

checker = SpotChecker(
    task_list=[SpotCheckTask(id=n, node_id=f"node-{n}") for n in range(20)],
    task_handler=lambda task: task.id % 7 != 1,
    retry_delay=0.0,
)
checker.do()
sorted(checker.invalid_node_list)   # [1, 8, 15]
```

```python
from ytdatanode.recover_tasks import ConcurrencyPool, compute_pool_size

compute_pool_size(10, 0.01)     # (10, 100): 10 shard fetches, 100 tasks
pool = ConcurrencyPool(2000, 1)
if pool.acquire(timeout=1):
    pool.release()
pool.resize(10)
```

## What the package does not do

It has no network host or message transport, no shard store, and no erasure
or LRC decoding, so it does not itself fetch, rebuild or store shards, serve
requests or report to super nodes; it provides the bookkeeping those steps
use. It installs no command. `recover_tasks.TASK_PREFIXES` starts empty:
until the caller maps message-id prefixes to `TaskKind.RC` or `TaskKind.LRC`,
`classify_task` treats every task as a replica copy.

## Running the tests

Install the `test` extra and run `pytest` from the repository root.