# ipamcontroller

`ipamcontroller` assigns IP addresses to host names and keys. Each request
names an IPAM label, which selects a pool of addresses. A controller passes
each request to a manager, and the manager hands out or releases addresses.

Two managers are available:

* **f5-ip-provider** (`ipamcontroller.f5ipammanager.IPAMManager`): addresses
  come from static ranges that you configure for each IPAM label. Allocations
  are kept in an SQLite database, so they are still there after a restart.
* **infoblox** (`ipamcontroller.infobloxmanager.InfobloxManager`): addresses
  are allocated and released as fixed addresses on an Infoblox server, through
  its WAPI REST interface. Each IPAM label maps to a CIDR in a network view.

## Concepts

* **IPAM label**: a name such as `dev` or `prod` that selects a pool of
  addresses.
* **Reference**: what an address is allocated to. This is the host name, or
  the key when there is no host name. Asking again with the same label and
  reference gives back the address that is already allocated.
* **Request and response**: `ipamcontroller.ipamspec.IPAMRequest` carries an
  `Operation` (`CREATE` or `DELETE`), a host name, a key, an IPAM label, an
  optional address and free-form metadata. `IPAMResponse` carries the request,
  the address and a status flag.

## Static ranges

Ranges are given as a JSON object. It maps each label to one or more
`start-end` ranges, separated by commas:

```json
{"test": "172.16.1.1-172.16.1.10,172.16.1.21-172.16.1.30",
 "prod": "172.16.1.50-172.16.1.55"}
```

`expand_ip_range` lists every address that a range covers, with both end
points included. It raises `ProviderError` when a range is malformed:

```python
from ipamcontroller.provider import expand_ip_range

expand_ip_range("172.16.1.1-172.16.1.3")
# ['172.16.1.1', '172.16.1.2', '172.16.1.3']
```

A provider combines a range configuration with a store:

```python
from ipamcontroller.store import new_store
from ipamcontroller.provider import new_provider

store = new_store("ipam.sqlite3")       # creates the file if it is missing
provider = new_provider('{"test": "172.16.1.1-172.16.1.5"}', store)

ip = provider.allocate_next_ip_address("test", "foo.com")    # lowest free address
provider.get_ip_address_from_reference("test", "foo.com")    # the same address
provider.release_addr(ip)                                     # back to the pool
```

Lookups and allocations return `None` when there is nothing to return, for
example when the label is unknown or the pool is used up.

When `new_provider` is called without a store, it opens the database at
`/app/ipamdb/cis_ipam.sqlite3`. `DBStore()` with no arguments gives an
in-memory database, and it can be used as a context manager.

At start-up the provider compares the configuration with what the store
already holds:

* Labels that are no longer configured are dropped.
* Labels whose range has changed are rebuilt.
* Labels whose range is the same keep their allocations.

Invalid JSON or an invalid range raises `ProviderError`.

## Infoblox

The Infoblox manager reads its label map from JSON like this:

```json
{"Dev": {"cidr": "172.16.4.0/24"}, "Test": {"cidr": "172.16.5.0/24"}}
```

`parse_labels` turns the map into `IBConfig` values. DNS views are not
supported yet, so any view given in the map is dropped.

`new_infoblox_manager(InfobloxParams(...))` connects to
`https://<host>:<port>/wapi/v<version>/` and then:

1. Creates the `F5IPAM` extensible attribute definition if it is missing.
2. Checks that the network view exists.
3. Checks that each label's network exists.

The `ssl_verify` setting works like this:

* `"false"` turns certificate checking off.
* `"true"` or an empty value turns it on.
* Any other value is used as the path to a CA bundle.

## Managers and the controller

`ipamcontroller.manager.new_manager(Params(provider=...))` builds the manager
that `provider` names, either `"f5-ip-provider"` or `"infoblox"`. It raises
`ManagerError` for an unknown provider name, and also when the chosen manager
cannot be set up. Every manager satisfies the `Manager` protocol:
`create_a_record`, `delete_a_record`, `get_ip_address`,
`allocate_next_ip_address` and `release_ip_address`.

`ipamcontroller.controller.Controller(orchestrator, manager)` serves requests:

* For a create request, `handle_request` returns the address the reference
  already holds, or allocates the next free one. It returns `None` if no
  address can be had.
* For a delete request, it releases the address if one is held, and always
  returns a successful response.

`start()` does three things:

1. Hands the controller's request and response queues to the orchestrator.
2. Starts the orchestrator.
3. Serves requests from the request queue in a background thread.

`stop()` stops both the orchestrator and that thread. An orchestrator is any
object that provides `setup_communication_channels(req_queue, resp_queue)`,
`start(stop_event)` and `stop()`.

## IPAM resources

`ipamcontroller.resources` models the IPAM custom resource in group
`fic.f5.com`, version `v1`:

* `IPAM` has a spec, which is a list of `HostSpec`, and a status, which is a
  list of `IPSpec`.
* `IPAM.to_dict()` and `IPAM.from_dict()` convert to and from the JSON form.
* `IPAMList.from_dict()` reads a list response.

## Logging

`ipamcontroller.vlogger` provides logging functions for each level. Messages
go to the logger registered for their level, and are dropped until one is
registered:

```python
from ipamcontroller import vlogger

vlogger.register_logger(vlogger.LogLevel.DEBUG, vlogger.LogLevel.CRITICAL,
                        vlogger.ConsoleLogger())
vlogger.set_log_level(vlogger.LogLevel.INFO)
vlogger.info("allocated %s", "172.16.1.1")
```

`ConsoleLogger` writes info messages to standard output and all other levels
to standard error. `fatal` logs a critical message, closes the loggers and
raises `SystemExit(1)`.

## Helpers

`ipamcontroller.utils` provides:

* `is_ip_addr`, `is_ipv4_addr` and `is_ipv6_addr`.
* `random_string(n)`, which returns the first `n` characters of a random UUID.

## What this package does not do

* It has no client for a cluster API server. It does not watch IPAM
  resources, and it does not write allocated addresses back into their status.
  You supply the orchestrator that feeds requests to the `Controller` and acts
  on its responses.
* It does not register the IPAM resource definition with a cluster, and it
  does not validate resources against a schema.
* It installs no command-line program or service. You assemble and run the
  controller from your own code.