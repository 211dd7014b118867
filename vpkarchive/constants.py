# Magic and versions
VPK_SIGNATURE = 0x55AA1234

VERSION_1 = 1
VERSION_2 = 2
SUPPORTED_VERSIONS = (VERSION_1, VERSION_2)
WRITABLE_VERSIONS = (VERSION_1,)

# Header lengths by version
HEADER_1_LENGTH = 12
HEADER_2_LENGTH = 28
HEADER_LENGTHS = {
    VERSION_1: HEADER_1_LENGTH,
    VERSION_2: HEADER_2_LENGTH,
}

# Directory entries
DIR_ARCHIVE_INDEX = 0x7FFF  # payload follows the tree in the _dir.vpk file
ENTRY_TERMINATOR = 0xFFFF

# Encoded entry body: crc u32, preload u16, archive u16, offset u32, length u32,
# terminator u16, then the two level-closing NULs written after every record.
ENTRY_BODY_LENGTH = 20

# A lone space stands for "no extension" / "no directory" / "no base name".
PLACEHOLDER = " "

# Archive naming
DIR_SUFFIX = "_dir.vpk"
SEGMENT_SUFFIX_FMT = "_{index:03d}.vpk"
