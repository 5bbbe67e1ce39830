from nftledger.db.encoder import encode, decode
from nftledger.exceptions import DatabaseDriverNotFound
from nftledger import config
from nftledger.logger import get_logger
import pymongo
import re


# DB maps bytes to bytes
# Driver maps string to python object


class InMemDriver:
    def __init__(self):
        self.db = {}

    def get(self, item: str):
        key = item.encode()
        res = self.db.get(key)
        if res is None:
            return None
        return decode(res)

    def set(self, key: str, value):
        if value is None:
            self.__delitem__(key)
        else:
            self.db[key.encode()] = encode(value).encode()

    def delete(self, key: str):
        self.__delitem__(key)

    def iter(self, prefix: str, length=0):
        p = prefix.encode()

        l = []
        for k in sorted(self.db.keys()):
            if k.startswith(p):
                l.append(k.decode())
            if 0 < length <= len(l):
                break

        return l

    def keys(self):
        return sorted([k.decode() for k in self.db.keys()])

    def flush(self):
        self.db.clear()

    def __getitem__(self, item: str):
        value = self.get(item)
        if value is None:
            raise KeyError(item)
        return value

    def __setitem__(self, key: str, value):
        self.set(key, value)

    def __delitem__(self, key: str):
        k = key.encode()
        try:
            del self.db[k]
        except KeyError:
            pass


class MongoDriver:
    # conn_str see https://www.mongodb.com/docs/manual/reference/connection-string/
    def __init__(self, conn_str=None, db=config.DB_NAME, collection=config.DB_COLLECTION, client=None):
        if conn_str is None:
            conn_str = 'mongodb://{}:{}'.format(config.DB_URL, config.DB_PORT)

        self.client = client or pymongo.MongoClient(conn_str)
        self.db = self.client[db][collection]

    def get(self, item: str):
        v = self.db.find_one({'rawKey': item})
        if v is None:
            return None
        return decode(v['value'])

    def set(self, key: str, value):
        if value is None:
            self.delete(key)
        else:
            self.db.update_one({'rawKey': key}, {'$set': {'value': encode(value)}}, upsert=True)

    def delete(self, key: str):
        self.db.delete_one({'rawKey': key})

    def iter(self, prefix: str, length=0):
        cur = self.db.find({'rawKey': {'$regex': '^{}'.format(re.escape(prefix))}})

        keys = []
        for entry in cur:
            keys.append(entry['rawKey'])
            if 0 < length <= len(keys):
                break

        keys.sort()
        return keys

    def keys(self):
        k = [entry['rawKey'] for entry in self.db.find({})]
        k.sort()
        return k

    def flush(self):
        self.db.delete_many({})

    def __getitem__(self, item: str):
        value = self.get(item)
        if value is None:
            raise KeyError(item)
        return value

    def __setitem__(self, key: str, value):
        self.set(key, value)

    def __delitem__(self, key: str):
        self.delete(key)


DRIVERS = {
    'memory': InMemDriver,
    'mongo': MongoDriver,
}


def get_driver(db_type=None, **kwargs):
    db_type = db_type or config.DB_TYPE
    driver = DRIVERS.get(db_type)

    if driver is None:
        raise DatabaseDriverNotFound(driver=db_type, known_drivers=list(DRIVERS.keys()))

    return driver(**kwargs)


_MISSING = object()


class CacheDriver:
    def __init__(self, driver=None):
        self.pending_writes = {}  # L2 cache
        self.cache = {}  # L1 cache
        self.driver = driver if driver is not None else get_driver()  # L0 cache

    def find(self, key: str):
        # A None in the pending writes is a pending delete, so it shadows the lower levels
        value = self.pending_writes.get(key, _MISSING)
        if value is not _MISSING:
            return value

        value = self.cache.get(key, _MISSING)
        if value is not _MISSING:
            return value

        value = self.driver.get(key)
        self.cache[key] = value

        return value

    def get(self, key: str):
        return self.find(key)

    def set(self, key, value):
        self.pending_writes[key] = value

    def delete(self, key):
        self.set(key, None)

    def savepoint(self):
        return dict(self.pending_writes)

    def restore(self, savepoint: dict):
        self.pending_writes.clear()
        self.pending_writes.update(savepoint)

    def commit(self):
        for k, v in self.pending_writes.items():
            if v is None:
                self.driver.delete(k)
            else:
                self.driver.set(k, v)

        self.cache.clear()
        self.pending_writes.clear()

    def rollback(self):
        # Returns to L0 state which should be whatever it was prior to any write sessions
        self.cache.clear()
        self.pending_writes.clear()

    def clear_pending_state(self):
        self.rollback()


class LedgerDriver(CacheDriver):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.delimiter = config.INDEX_SEPARATOR
        self.log = get_logger('Driver')

    def items(self, prefix=''):
        # Get all of the items in the cache currently
        _items = {}
        keys = set()

        for k, v in self.pending_writes.items():
            if k.startswith(prefix):
                keys.add(k)
                if v is not None:
                    _items[k] = v

        # Get all of the keys we need
        db_keys = set(self.driver.iter(prefix=prefix))

        # Subtract the already gotten keys
        for k in db_keys - keys:
            value = self.get(k)
            if value is not None:
                _items[k] = value

        return _items

    def keys(self, prefix=''):
        return sorted(self.items(prefix).keys())

    def values(self, prefix=''):
        return list(self.items(prefix).values())

    def make_key(self, contract, variable, args=()):
        contract_variable = self.delimiter.join((contract, variable))
        if args:
            return config.DELIMITER.join((contract_variable, *[str(arg) for arg in args]))
        return contract_variable

    def get_var(self, contract, variable, arguments=()):
        key = self.make_key(contract, variable, arguments)
        return self.get(key)

    def set_var(self, contract, variable, arguments=(), value=None):
        key = self.make_key(contract, variable, arguments)
        self.set(key, value)

    def get_contract_keys(self, name):
        return self.keys(name + self.delimiter)

    def flush(self):
        self.log.debug('Flushing all ledger state')
        self.driver.flush()
        self.clear_pending_state()
