from imgdedup.core.models import HashAlgorithm

ALGORITHM_ALIASES = {algo.value: algo for algo in HashAlgorithm}

ALGORITHM_CHOICES = list(ALGORITHM_ALIASES.keys())

ALGORITHM_HELP_TEXT = (
    "Perceptual hash algorithm:\n"
    + "".join(f"  {algo.value:<16}: {algo.description}\n" for algo in HashAlgorithm)
    + "Default: double-gradient"
)

HASH_SIZE_HELP_TEXT = (
    "Fingerprint size in bits, as WIDTH or WIDTH,HEIGHT (e.g. 16 or 20,16).\n"
    "Larger sizes give larger distances for the same change.\n"
    "Default: 12,12"
)

THRESHOLD_HELP_TEXT = (
    "Hamming distance upper threshold (inclusive) for two images to count as similar.\n"
    "Note: the larger the hash size, the larger distances generally become.\n"
    "Default: 16"
)

SUBCOMMAND_HELP = {
    "hash": "Compute and show fingerprints for the input files",
    "scan-duplicates": "Scan the input files for duplicates and show them",
    "move-duplicates": "Scan for duplicates, then move them to another directory",
}

EPILOG_TEXT = """
Examples:
  Show the fingerprint of every image in a folder
  %(prog)s ~/Pictures hash

  Find similar pairs among PNG and JPEG files only, with 8 threads
  %(prog)s ~/Pictures -f '\\.(png|jpe?g)$' -c 8 scan-duplicates -t 10

  Use a larger rectangular perceptual hash
  %(prog)s ~/Pictures scan-duplicates -a h-gradient -s 24,16 -t 20

  Move every image that has a near-duplicate into another folder
  %(prog)s ~/Pictures move-duplicates ~/Pictures/duplicates
"""
