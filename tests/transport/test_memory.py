# tests/transport/test_memory.py
"""
lmc_tracer.transport.memoryモジュールの単体テスト。
"""
import pytest

from lmc_tracer.transport.memory import Memory, MemoryAccess, MemoryAccessType

# @intent:test_suite 固定長メモリの読み書き、アクセスログ、エラーハンドリングの検証。

class TestMemory:
    # @intent:test_case_init メモリが正しいサイズで0初期化されることを検証します。
    def test_init_valid_size(self):
        memory = Memory(16)
        assert memory.get_size() == 16
        assert memory.dump() == (0,) * 16

    @pytest.mark.parametrize("size", [0, -1, 1.5, "8"])
    def test_init_invalid_size(self, size):
        with pytest.raises(ValueError, match="Memory size must be a positive integer."):
            Memory(size)

    def test_cells_hold_unbounded_integers(self):
        memory = Memory(2)
        memory.write(0, -(2 ** 70))
        memory.write(1, 2 ** 70)
        assert memory.read(0) == -(2 ** 70)
        assert memory.read(1) == 2 ** 70

    @pytest.mark.parametrize("address", [-1, 4])
    def test_out_of_bounds(self, address):
        memory = Memory(4)
        with pytest.raises(IndexError, match="out of bounds"):
            memory.read(address)
        with pytest.raises(IndexError):
            memory.write(address, 1)
        with pytest.raises(IndexError):
            memory.peek(address)
        with pytest.raises(IndexError):
            memory.load(address, 1)

    # @intent:test_case_log 読み書きが記録され、peek/loadは記録されないことを検証します。
    def test_activity_log(self):
        memory = Memory(4)
        memory.load(1, 9)
        memory.peek(1)
        memory.read(1)
        memory.write(1, 5)
        log = memory.get_and_clear_activity_log()
        assert log == [
            MemoryAccess(1, 9, MemoryAccessType.READ),
            MemoryAccess(1, 5, MemoryAccessType.WRITE, previous_data=9),
        ]
        assert memory.get_and_clear_activity_log() == []

    def test_dump_is_a_copy(self):
        memory = Memory(2)
        dumped = memory.dump()
        memory.write(0, 1)
        assert dumped == (0, 0)
