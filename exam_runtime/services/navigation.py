class NavigationCursor:
    """문제 목록 안에서만 움직이는 인덱스. 범위를 벗어나는 이동은 무시한다 (wrap-around 없음)."""

    def __init__(self, total: int, index: int = 0) -> None:
        self.total = max(0, total)
        self.index = 0
        self.reset(index)

    def reset(self, index: int) -> None:
        """저장본 복원용. 문제 수가 바뀌었을 수 있으므로 범위 안으로 보정한다."""
        self.index = max(0, min(index, self.total - 1)) if self.total else 0

    def go_to(self, index: int) -> bool:
        if not (0 <= index < self.total) or index == self.index:
            return False
        self.index = index
        return True

    def next(self) -> bool:
        return self.go_to(self.index + 1)

    def prev(self) -> bool:
        return self.go_to(self.index - 1)
