"""分区计算 -- 同一 key 的消息始终落在同一分区

哈希与 Java String.hashCode 一致：h = h * 31 + code_unit，
按 UTF-16 code unit 迭代，结果截断为有符号 32 位整数。
"""


def string_hash32(value: str) -> int:
    """计算有符号 32 位字符串哈希"""
    h = 0
    data = value.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def partition_for_key(key: str, partition_count: int) -> int:
    """根据 key 计算分区号

    Args:
        key: 分区键（通常为 user_id）
        partition_count: 分区总数

    Returns:
        [0, partition_count) 范围内的分区号
    """
    if partition_count < 1:
        raise ValueError("partition_count 必须 >= 1")
    return abs(string_hash32(key)) % partition_count
