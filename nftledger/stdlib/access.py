from nftledger.execution.runtime import rt
from contextlib import ContextDecorator
from functools import wraps


class frame(ContextDecorator):
    """Pushes a call frame when execution moves into another contract.

    The new frame's caller is whichever contract was executing before, so a
    contract calling into the ledger is seen by the ledger as the caller.
    """
    def __init__(self, contract, caller=None):
        self.contract = contract
        self.caller = caller
        self._pushed = []

    def __enter__(self):
        pushed = False

        if rt.context._context_changed(self.contract):
            current_state = rt.context._get_state()

            state = {
                'caller': self.caller if self.caller is not None else current_state['this'],
                'signer': current_state['signer'],
                'this': self.contract
            }

            pushed = rt.context._add_state(state)

        self._pushed.append(pushed)
        return self

    def __exit__(self, *args, **kwargs):
        if self._pushed.pop():
            rt.context._pop_state()


def export(func):
    """Marks a contract method as externally callable and runs it inside the contract's own frame."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        with frame(self.address):
            return func(self, *args, **kwargs)

    wrapper.__exported__ = True
    return wrapper


def is_exported(func):
    return getattr(func, '__exported__', False)
