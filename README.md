# scopa

Building blocks for genetic association analysis of imputed genotype data.

## Modules

- `scopa.bgen_io` reads and writes the blocks of a BGEN file: the offset
  (`read_offset`, `write_offset`), the header (`read_header_block`,
  `write_header_block`, giving a `Context`), the sample identifiers
  (`read_sample_identifier_block`, `write_sample_identifier_block`), the
  identifying data of each variant (`read_snp_identifying_data`,
  `write_snp_identifying_data`, using `Variant`) and the raw genotype data
  blocks (`read_genotype_data_block`, `ignore_genotype_data_block`,
  `uncompress_probability_data`). Layouts 1.0, 1.1 and 1.2 are read,
  compressed or not; layouts 1.1 and 1.2 are written. Malformed or truncated
  input raises `BGenError`. `FlagMask`, `Layout` and `SAMPLE_IDENTIFIERS`
  describe the header flags.
- `scopa.probability_reader` decodes a probability block into one
  `SampleProbabilities` per sample (ploidy, allele count, order type and
  values, with missing samples reported as `MissingValue`).
  `read_and_parse_genotype_data_block` reads, uncompresses and parses in one
  step. `n_choose_k` and `conversion_factor` are exposed as well.
- `scopa.probability_writer` encodes (AA, AB, BB) probabilities per sample:
  `write_uncompressed_snp_probability_data` returns the block's bytes and
  `write_snp_probability_data` writes a whole block to a stream, compressing
  it when the header flags ask for it. In layout 1.2 a sample whose three
  probabilities are all zero is stored as missing. `ProbabilityDataWriter`
  builds a layout 1.2 block sample by sample, including phased data and more
  than two alleles, and `round_probs_to_scaled_simplex` does the rounding to
  integers that keeps their sum.
- `scopa.compression` has `zlib_compress` and `zlib_uncompress`.
- `scopa.genotypes` defines `OrderType`, `ValueType`, `MissingValue` and the
  shared `MISSING` instance.
- `scopa.matrices` provides `Matrix`, with in-place inversion of symmetric
  matrices (`invert_symmetric`, which returns `False` on a singular or
  non-square matrix), and `Vector`. Reads outside either return 0.0 and
  writes outside are ignored.
- `scopa.tools` holds `tokenize`, `check_alleles` (numeric codes 1–4 become
  A, C, G, T; returns `None` for an invalid or identical pair), `flip`,
  `pheno_mask`, `chi_square_cdf_1df` and the Hardy–Weinberg test `hwe`,
  which returns the p-value as text or `"NA"`.
- `scopa.settings` holds run `Settings`; `create_output` derives the
  `.result`, `.log`, `.betas` and `.err` file names from `output_root`.

## Install

```
pip install .
```

## Writing and reading a BGEN file

```python
import io

from scopa import bgen_io, probability_reader, probability_writer
from scopa.bgen_io import Context, FlagMask, Layout, SAMPLE_IDENTIFIERS, Variant

context = Context(
    number_of_samples=2,
    number_of_variants=1,
    flags=Layout.V12 | FlagMask.COMPRESSED_SNP_BLOCKS | SAMPLE_IDENTIFIERS,
)

samples = io.BytesIO()
sample_block_size = bgen_io.write_sample_identifier_block(samples, context, ["s1", "s2"])

out = io.BytesIO()
bgen_io.write_offset(out, context.header_size() + sample_block_size)
bgen_io.write_header_block(out, context)
out.write(samples.getvalue())
bgen_io.write_snp_identifying_data(out, context, Variant("snp1", "rs1", "01", 1000, ("A", "G")))
probability_writer.write_snp_probability_data(out, context, [(1.0, 0.0, 0.0), (0.1, 0.8, 0.1)])

stream = io.BytesIO(out.getvalue())
offset = bgen_io.read_offset(stream)
header = bgen_io.read_header_block(stream)
print(bgen_io.read_sample_identifier_block(stream, header))
stream.seek(offset + 4)
while (variant := bgen_io.read_snp_identifying_data(stream, header)) is not None:
    for sample in probability_reader.read_and_parse_genotype_data_block(stream, header):
        print(variant.rsid, sample.values)
```

Probabilities are stored as 16-bit integers by default, so values read back
are close to, not exactly, those written.

## Hardy–Weinberg test

```python
from scopa.tools import hwe

print(hwe(10, 40, 50))
```

## What the package does not do

There is no command-line program and no association analysis: nothing here
reads a `Settings` object's input files, fits linear or logistic
regressions, or writes result files. `Matrix` and `Vector` store numbers and
invert symmetric matrices, but no regression is built on them.

## Tests

```
pip install .[test]
pytest
```