from nftledger.execution import runtime
from nftledger.db.driver import LedgerDriver
from nftledger.contracts.receiver import ContractRegistry
from nftledger.stdlib.access import frame, is_exported
from nftledger.stdlib.hashing import normalize_address
from nftledger.exceptions import LedgerError, PrivateMethodCall, UnknownFunction
from nftledger.logger import get_logger
from nftledger import config
import traceback

log = get_logger('EXECUTOR')

_MISSING = object()


class Executor:
    def __init__(self, driver=None, registry=None, bypass_privates=False):
        self.driver = driver if driver is not None else LedgerDriver()
        self.registry = registry if registry is not None else ContractRegistry()

        self.bypass_privates = bypass_privates

        # Calls made while another call is running, e.g. from a receiver callback
        self._depth = 0

        runtime.rt.env.update({'__Driver': self.driver})

    def _writes_since(self, savepoint):
        return {k: v for k, v in self.driver.pending_writes.items() if savepoint.get(k, _MISSING) != v}

    def execute(self, sender, contract, function_name, kwargs=None, auto_commit=True) -> dict:
        if kwargs is None:
            kwargs = {}

        with runtime.rt.lock:
            nested = self._depth > 0
            savepoint = self.driver.savepoint()
            succeeded = False

            self._depth += 1

            if not nested:
                runtime.rt.set_up(signer=sender, this=None)

            try:
                if not self.bypass_privates and function_name.startswith(config.PRIVATE_METHOD_PREFIX):
                    raise PrivateMethodCall(function_name=function_name)

                # A call made from inside a running contract acts as that contract
                if nested:
                    caller = runtime.rt.context.this
                    if normalize_address(sender) != caller:
                        log.warning('Nested call from {} claimed sender {}'.format(caller, sender))
                else:
                    caller = normalize_address(sender)

                target = self.registry.get(contract)

                func = getattr(target, function_name, None)
                if func is None or not (self.bypass_privates or is_exported(func)):
                    raise UnknownFunction(contract_name=contract, function_name=function_name)

                with frame(target.address, caller=caller):
                    result = func(**kwargs)

                status_code = 0
                writes = self._writes_since(savepoint)

                if auto_commit and not nested:
                    self.driver.commit()

                succeeded = True

            except LedgerError as e:
                log.warning(str(e))
                result, status_code, writes = e, 1, {}

            except Exception as e:
                log.error(str(e))
                log.error(traceback.format_exc())
                result, status_code, writes = e, 1, {}

            finally:
                # Also reached by BaseExceptions, which are not turned into outputs
                if not succeeded:
                    self.driver.restore(savepoint)

                self._depth -= 1

                if not nested:
                    runtime.rt.clean_up()

        output = {
            'status_code': status_code,
            'result': result,
            'writes': writes,
        }

        return output
