# hamsdr

Building blocks for a software-defined amateur radio transceiver, written in
plain Python with NumPy for the signal work. Each module is a library piece
that an application wires together; the package has no command of its own.

## What is inside

| Module | Purpose |
| --- | --- |
| `hamsdr.ringqueue` | `SampleQueue`, a fixed-size ring buffer of integer samples that counts overflows and underflows |
| `hamsdr.equalizer` | Five-band parametric equalizer: `EQBand`, `ParametricEQ`, `Biquad`, `apply_eq`, `load_eq`, `read_value`, `remove_dc_offset`, `scale_samples` |
| `hamsdr.ntp` | SNTP client: `ntp_request` asks a server for the time, `sync_system_time` sets the clock when it is more than a second off |
| `hamsdr.remote` | `RemoteConsole`, a non-blocking line console over TCP (port 8081 by default) |
| `hamsdr.morse` | Morse tables for sending (`tx_code`) and receiving (`rx_lookup`), prosigns included |
| `hamsdr.cw_decoder` | `CwDecoder`, a Goertzel-based Morse decoder that follows the sender's dash length |
| `hamsdr.cw_keyer` | `CwKeyer`, a straight-key, iambic and iambic-B keyer that produces shaped audio samples |
| `hamsdr.callsign_hash` | `CallsignHashTable`, an aged table mapping FT8/FT4 callsign hashes back to callsigns |
| `hamsdr.ft8_dsp` | GFSK waveform synthesis (`synth_gfsk`, `slot_signal`), window functions and the waterfall `Monitor` |
| `hamsdr.ft8_scheduler` | `Ft8Receiver` (collects a 15-second slot for decoding) and `Ft8Scheduler` (starts transmissions in the right slot) |
| `hamsdr.ft8_qso` | `tokenize` for decoded lines and `Ft8Qso`, which answers CQs, calls and signal reports |
| `hamsdr.b64codec` | `b64_encode` and a lenient `b64_decode` |
| `hamsdr.fldigi` | `FldigiClient`, an XML-RPC client for a local fldigi (RTTY, PSK31) |

## Examples

A sample queue:

```python
from hamsdr.ringqueue import SampleQueue

queue = SampleQueue(8000)
queue.write(1234)          # raises OverflowError when full
assert len(queue) == 1
assert queue.read() == 1234
assert queue.read() == 0   # empty queue reads as silence
```

Morse lookups:

```python
from hamsdr.morse import tx_code, rx_lookup

tx_code("a")         # ".-"
rx_lookup("-...-")   # "<BT>"
```

Decoding CW from 96 kHz samples, printing text as it is decoded:

```python
from hamsdr.cw_decoder import CwDecoder

decoder = CwDecoder(output=lambda text: print(text, end=""))
decoder.set_pitch(700)
decoder.set_wpm(20)
decoder.feed(samples)  # length must be a multiple of 1024
```

Keying CW from queued text:

```python
from hamsdr.cw_keyer import CwKeyer, KeyerMode, KeySymbol, TxAction

text = iter("CQ")
keyer = CwKeyer(text_source=lambda: next(text, None), echo=print)
keyer.set_wpm(20)
action = keyer.poll(KeySymbol.IDLE, 2, False, now_ms=0, cw_delay_ms=500,
                    mode=KeyerMode.STRAIGHT)
if action is TxAction.TX_ON:
    audio = [keyer.next_sample() for _ in range(96000)]
```

Equalizing a block of samples:

```python
from hamsdr.equalizer import EQBand, ParametricEQ, apply_eq

eq = ParametricEQ([EQBand(300, 3, 1), EQBand(800, 0, 1), EQBand(1500, -2, 1),
                   EQBand(2200, 0, 1), EQBand(2800, 2, 1)])
out = apply_eq(eq, samples, 48000.0)
```

Building an FT8 transmit slot from its 79 tones:

```python
from hamsdr.ft8_dsp import Monitor, Protocol, slot_signal

signal = slot_signal(tones, 1500, Protocol.FT8)
monitor = Monitor(Protocol.FT8)
monitor.process_signal(signal)   # fills monitor.wf, the waterfall
```

Asking fldigi for received text:

```python
from hamsdr.fldigi import FldigiClient

client = FldigiClient("127.0.0.1", 7362, 1.0)
client.set_mode("BPSK31")        # raises FldigiError if fldigi is unreachable
print(client.read_text())        # None if polled within 250 ms
```

Base64:

```python
from hamsdr.b64codec import b64_encode, b64_decode

assert b64_decode(b64_encode("CQ CQ")) == "CQ CQ"
```

## What the package does not do

- It does not pack FT8/FT4 message text into tones, and it does not decode
  them: there is no candidate search, LDPC or message unpacking.
  `Ft8Scheduler` takes an `encoder(text, pitch)` callable that you supply,
  and `Monitor` only builds the waterfall.
- It does no audio input or output and drives no radio hardware; samples
  are passed in and returned as numbers.
- It has no user interface and no command-line program.

## Requirements

Python 3.10 or later and NumPy. `sync_system_time` needs a platform with
`time.clock_settime` and the rights to set the clock.