from pytest import Item, fixture

from rpnx.logging import set_tracing


@fixture(autouse=True)
def clean_session(monkeypatch):
    '''
    Every test starts without RPNX_INIT and ends with tracing off.
    '''
    monkeypatch.delenv('RPNX_INIT', raising=False)
    yield
    set_tracing(0)


def pytest_assertion_pass(item: Item,
                          lineno: int,
                          orig: str,
                          expl: str) -> None:
    '''
    Record each passing assertion with the values it compared.

    Enabled by enable_assertion_pass_hook in pyproject.toml; shown with
    pytest -rP.
    '''
    where = '{}:{}'.format(item.nodeid, lineno)
    print('given', where, orig)
    # Last two lines are pytest's "use -v" hints.
    print('actual', where, '\n'.join(expl.splitlines()[:-2]) or expl)
