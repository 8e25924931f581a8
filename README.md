# promcommon

Data structures and helpers shared by monitoring components: label and
metric names, label sets and their fingerprints, millisecond timestamps
and durations, query result values (samples, vectors, matrices,
histograms), alerts, silences, and a standard logger setup built on the
`logging` module.

## What is in it

| Module | Contents |
| --- | --- |
| `promcommon.names` | Label and metric name validation (legacy or UTF-8), name escaping schemes, `MetricType`, `LabelPair` |
| `promcommon.fingerprint` | FNV-1a 64-bit hashing, `Fingerprint`, label signatures |
| `promcommon.labelset` | `LabelSet` and `Metric` with ordering, merging, JSON decoding and fingerprints |
| `promcommon.timestamps` | `Time` (milliseconds since the epoch), `Duration`, `parse_duration`, `Interval` |
| `promcommon.samples` | `SamplePair`, `ValueType`, `format_float`, `parse_float_string` |
| `promcommon.histogram` | `HistogramBucket`, `SampleHistogram`, `SampleHistogramPair` |
| `promcommon.values` | `Sample`, `SampleStream`, `Scalar`, `StringValue`, `Vector`, `Matrix` |
| `promcommon.alert` | `Alert`, `AlertStatus` and helpers over lists of alerts |
| `promcommon.silence` | `Matcher` and `Silence` with validation |
| `promcommon.logsetup` | `AllowedLevel`, `AllowedFormat`, `LogStyle`, `LoggerConfig`, `new_logger`, `new_nop_logger` |
| `promcommon.flags` | `add_flags` to put `--log.level` and `--log.format` on an `argparse` parser |

## Names and escaping

```python
from promcommon.names import escape_name, unescape_name, to_escaping_scheme

scheme = to_escaping_scheme("values")
escaped = escape_name("mysystem.prod.west.cpu.load", scheme)
# 'U__mysystem_2e_prod_2e_west_2e_cpu_2e_load'
unescape_name(escaped, scheme)
# 'mysystem.prod.west.cpu.load'
```

The escaping schemes are `allow-utf-8`, `underscores`, `dots` and
`values`; `to_escaping_scheme` raises `ValidationError` for anything
else. Malformed value-encoded names are returned unchanged by
`unescape_name`.

Name validation follows a process-wide scheme, UTF-8 by default. Use
`set_name_validation_scheme`, or the `name_validation_scheme` context
manager to switch for a block of code:

```python
from promcommon.names import ValidationScheme, is_valid_label_name, name_validation_scheme

with name_validation_scheme(ValidationScheme.LEGACY):
    is_valid_label_name("colon:in:the:middle")   # False
is_valid_label_name("colon:in:the:middle")       # True
```

## Label sets and fingerprints

```python
from promcommon.labelset import LabelSet
from promcommon.fingerprint import Fingerprint, labels_to_signature

ls = LabelSet({"foo": "bar", "abc": "prometheus"})
str(ls)            # '{abc="prometheus", foo="bar"}'
ls.fingerprint()   # stable 64-bit FNV-1a fingerprint

labels_to_signature({})                 # 14695981039346656037
Fingerprint.from_string("4294967295")   # parsed as hexadecimal: 285960729237
```

`LabelSet` is a `dict`; `Metric` is a `LabelSet` whose string form puts
the `__name__` label in front. `LabelSet.validate()` raises
`ValidationError` for invalid names or values, and
`LabelSet.from_json` rejects invalid label names.

## Durations and timestamps

```python
from promcommon.timestamps import Time, parse_duration

d = parse_duration("3w2d1h")
str(d)                     # '23d1h'
str(parse_duration("14d")) # '2w'

t = Time.from_unix(1136239445)
t.unix()                   # 1136239445
```

Units go from largest to smallest (`y`, `w`, `d`, `h`, `m`, `s`, `ms`);
malformed or out-of-range durations raise `ValueError`. `Duration` is an
integer number of nanoseconds; `Time` is an integer number of
milliseconds.

## Query results as JSON

`Sample`, `SampleStream`, `Vector`, `Matrix`, `Scalar`, `StringValue`,
`SamplePair` and the histogram types read and write the JSON shapes of
a query API with `from_json` and `to_json`: timestamps as seconds with
millisecond precision, values as quoted strings.

```python
from promcommon.values import Scalar

s = Scalar.from_json('[123.456,"456"]')
s.to_json()   # '[123.456,"456"]'
```

## Alerts and silences

`Alert.validate()` and `Silence.validate()` raise `ValidationError` on
inconsistent data (missing start time, end before start, invalid labels
or matchers, and so on). `Alert.status_at(ts)` tells whether an alert is
firing or resolved at a given `datetime`; `alerts_status` and
`alerts_status_at` do the same for a list of alerts. Alerts sort by
start time, end time, then fingerprint.

## Logging

```python
import argparse
from promcommon.logsetup import LoggerConfig, new_logger
from promcommon.flags import add_flags

parser = argparse.ArgumentParser()
config = LoggerConfig()
add_flags(parser, config)
parser.parse_args(["--log.level", "debug", "--log.format", "json"])

logger = new_logger(config)
logger.info("ready", extra={"component": "api"})
```

Levels are `debug`, `info`, `warn` and `error`; formats are `logfmt` and
`json`. `LogStyle.SLOG` writes `time`, `level` and `source` keys;
`LogStyle.GO_KIT` writes `ts`, a lower-case `level` and `caller`. The
level can be changed while the logger runs with
`config.level.set("info")`. `AllowedLevel.from_yaml` reads a level from
a YAML scalar.

## What it does not do

The package has no command of its own. It does not read or write the
protobuf exposition format, so there is no escaping of whole metric
families, and it does not parse full configuration files.

## Tests

The test suite uses pytest, declared in the `test` extra:

```
pip install -e ".[test]"
pytest
```