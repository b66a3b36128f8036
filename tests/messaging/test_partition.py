"""分区计算单元测试

哈希值与 Java String.hashCode 对齐。
"""

import pytest
from eventcollab.messaging import partition_for_key, string_hash32


class TestStringHash32:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("", 0),
            ("a", 97),
            ("abc", 96354),
            ("hello", 99162322),
            # 溢出回绕到 Integer.MIN_VALUE
            ("polygenelubricants", -2147483648),
        ],
    )
    def test_known_values(self, value, expected):
        assert string_hash32(value) == expected

    def test_non_bmp_uses_utf16_code_units(self):
        # U+1F600 编码为代理对 0xD83D 0xDE00
        assert string_hash32("\U0001F600") == 0xD83D * 31 + 0xDE00


class TestPartitionForKey:
    def test_known_partitions(self):
        assert partition_for_key("a", 3) == 1
        assert partition_for_key("abc", 3) == 0
        assert partition_for_key("hello", 3) == 1
        assert partition_for_key("polygenelubricants", 3) == 2

    def test_stable_and_in_range(self):
        for i in range(200):
            key = f"user-{i}"
            p = partition_for_key(key, 3)
            assert 0 <= p < 3
            assert partition_for_key(key, 3) == p

    def test_invalid_partition_count(self):
        with pytest.raises(ValueError):
            partition_for_key("a", 0)
