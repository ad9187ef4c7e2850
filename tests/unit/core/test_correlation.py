import re
from concurrent.futures import ThreadPoolExecutor

from src.utils.correlation import new_correlation_id

PATTERN = re.compile(r"^req-\d+-[0-9A-F]{8}$")


def test_format():
    assert PATTERN.match(new_correlation_id())


def test_ids_are_unique_across_threads():
    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda _: new_correlation_id(), range(2000)))
    assert len(set(ids)) == len(ids)
