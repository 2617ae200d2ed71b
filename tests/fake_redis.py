from redis.exceptions import ConnectionError as RedisConnectionError


class FakePipeline:
    def __init__(self, owner):
        self._owner = owner
        self._ops = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self._ops.append((name, args, kwargs))
            return self

        return queue

    def execute(self):
        return [getattr(self._owner, name)(*args, **kwargs) for name, args, kwargs in self._ops]


class FakeRedis:
    """Just enough of the redis-py surface for the conversion log."""

    def __init__(self, *, broken: bool = False):
        self.hashes: dict[str, dict] = {}
        self.lists: dict[str, list] = {}
        self.broken = broken

    def _check(self):
        if self.broken:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    def pipeline(self):
        self._check()
        return FakePipeline(self)

    def ping(self):
        self._check()
        return True

    def hset(self, key, mapping=None, **kwargs):
        self._check()
        self.hashes.setdefault(key, {}).update({k: str(v) for k, v in (mapping or {}).items()})
        return len(mapping or {})

    def hgetall(self, key):
        self._check()
        return dict(self.hashes.get(key, {}))

    def lpush(self, key, *values):
        self._check()
        items = self.lists.setdefault(key, [])
        for value in values:
            items.insert(0, str(value))
        return len(items)

    def lrange(self, key, start, end):
        self._check()
        items = self.lists.get(key, [])
        stop = len(items) if end == -1 else end + 1
        return items[start:stop]

    def ltrim(self, key, start, end):
        self._check()
        items = self.lists.get(key, [])
        stop = len(items) if end == -1 else end + 1
        self.lists[key] = items[start:stop]
        return True

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            removed += int(self.hashes.pop(key, None) is not None)
            removed += int(self.lists.pop(key, None) is not None)
        return removed
