# injectsvc

A user service stored in MongoDB and a small HTTP gateway in front of it.
Shared resources are built by a lightweight dependency injector
(`injectsvc.injection.Injector`):

- a MongoDB database, declared under `pymongo.database.Database` and read from
  the `mongo` section of the configuration;
- a Redis client, declared under `redis.Redis` and read from the `redis`
  section of the configuration.

Services are built lazily, the first time they are invoked. Each of these two
registers a shutdown helper when it is built, so `shutdown_default_injector()`
closes every connection that was actually opened.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Configuration

The configuration is a YAML file:

```yaml
mongo:
  address: mongodb://localhost:27017
  database: users
redis:
  address: localhost:6379
  password: password
```

Section keys are matched case-insensitively. A Redis address without a port
uses 6379; an empty one means `localhost:6379`. A missing `mongo` or `redis`
section raises `InjectionError` ("mongo config not found") when that service
is first needed.

## Command line

Start the HTTP gateway (default port 8000, all interfaces):

```
injectsvc server --config config.yaml
injectsvc server --config config.yaml --host 127.0.0.1 --port 8080
```

Run the worker, which sets up the injector, logs that it is running and then
shuts down:

```
injectsvc worker --config config.yaml
```

Without `--config`, `config.yaml` and then `manifest/config/config.yaml` in
the current directory are tried; if neither exists the configuration is empty.
Run `injectsvc --help` to see every option.

The gateway serves:

| Method | Path          | Parameters           | Action                    |
|--------|---------------|----------------------|---------------------------|
| GET    | `/hello`      |                      | Greeting (plain text)     |
| POST   | `/user`       | `name` (required)    | Create a user             |
| GET    | `/user/{id}`  |                      | Fetch one user            |
| GET    | `/user`       | `ids` (required)     | List users by id          |
| DELETE | `/user`       | `id` (required)      | Delete a user             |

Parameters are read from the query string and from a JSON or form-encoded
body; names are case-insensitive and `ids[]` is accepted for `ids`. Every
user endpoint answers with a JSON envelope `{"code", "message", "data"}`:
code `0` on success, `51` when a required parameter is missing, `50` when the
operation fails (for example an id that is not a 24-digit hex string), and
`65` with status 404 for an unknown route.

## Library use

```python
from injectsvc.injection import setup_default_injector, shutdown_default_injector
from injectsvc.user_service import UserService

injector = setup_default_injector(config)
try:
    users = UserService.from_injector(injector)
    user_id = users.create("john")
    print(users.get_by_id(user_id))
finally:
    shutdown_default_injector()
```

The layers, from the bottom up:

- `injectsvc.entity.User` — the stored record (`name`, `created_at`,
  `updated_at` in Unix milliseconds, `id`), with `to_document()` and
  `User.from_document()`.
- `injectsvc.user_dao.UserDao` — `create`, `update`, `delete`, `get_one`,
  `get_list` on the `user` collection; database failures raise `DaoError`.
- `injectsvc.user_service.UserService` — works with hex ids; empty names or
  ids raise `UserServiceError`. `get_list` with no ids returns every user.
- `injectsvc.user_controller.UserController` — wraps any failure in
  `ControllerError`.
- `injectsvc.gateway.GatewayUserController` and `HelloController` — what the
  HTTP endpoints call; users come back as `ListItem` (`id`, `name`,
  `created_at`).
- `injectsvc.cli.make_wsgi_app` — the WSGI application, usable with any WSGI
  server.

`Injector` offers `provide`, `provide_named`, `invoke`, `invoke_named`, `has`
and `shutdown`; `setup_shutdown_helper` and `setup_shutdown_helper_named` tie a
service to its release callback. Object id strings are converted with
`injectsvc.mongohelper.object_id_from_hex` and `object_ids_from_hexes`, which
raise `InvalidObjectIdError` when a string is not a 24-character hex id.

## What it does not do

The gateway calls the user controller in the same process; there is no
separate RPC user service and no service discovery. The Redis client is
declared in the injector but nothing in the package uses it. The worker does
no work beyond setting up and shutting down the injector.