from __future__ import annotations

import pytest

from delver.raws import RawMaster, load_raws


@pytest.fixture(scope="session")
def raws() -> RawMaster:
    """The spawn raws shipped with the package, loaded once per session."""
    return load_raws()
