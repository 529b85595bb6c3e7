"""Fixed-size ring buffer of integer audio samples."""


class SampleQueue:
    """Ring buffer of integer samples that counts overflows and underflows.

    The buffer holds ``length + 1`` slots. A write that would catch up with
    the read position is refused. A read from an empty queue yields silence
    (``0``).
    """

    def __init__(self, length):
        if length < 1:
            raise ValueError("queue length must be at least 1")
        self.max_q = length
        self._data = [0] * (length + 1)
        self.head = 0
        self.tail = 0
        self.stall = True
        self.underflow = 0
        self.overflow = 0

    def empty(self):
        """Discard queued samples and reset the counters."""
        self.head = 0
        self.tail = 0
        self.stall = True
        self.underflow = 0
        self.overflow = 0

    def __len__(self):
        if self.head >= self.tail:
            return self.head - self.tail
        return self.head + self.max_q - self.tail

    def write(self, value):
        """Append a sample; raise OverflowError when the queue is full."""
        full = self.head + 1 == self.tail or (
            self.tail == 0 and self.head == self.max_q - 1
        )
        if full:
            self.overflow += 1
            raise OverflowError("sample queue is full")
        self._data[self.head] = value
        self.head += 1
        if self.head > self.max_q:
            self.head = 0

    def read(self):
        """Remove and return the oldest sample, or 0 if the queue is empty."""
        if self.tail == self.head:
            self.underflow += 1
            return 0
        value = self._data[self.tail]
        self.tail += 1
        if self.tail > self.max_q:
            self.tail = 0
        return value