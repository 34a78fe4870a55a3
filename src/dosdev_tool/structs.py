# src/dosdev_tool/structs.py
"""Big-endian layouts of the AmigaOS structures the device directory uses.

Every field is a 32-bit longword, so the m68k two-byte alignment rule never
inserts padding and plain ctypes layout matches the native one.
"""

import ctypes as ct

BPTR = ct.c_uint32
BSTR = ct.c_uint32
APTR = ct.c_uint32
LONG = ct.c_int32
ULONG = ct.c_uint32


class RootNode(ct.BigEndianStructure):
    _fields_ = [
        ("rn_TaskArray", BPTR),
        ("rn_ConsoleSegment", BPTR),
        ("rn_Time", LONG * 3),
        ("rn_RestartSeg", LONG),
        ("rn_Info", BPTR),
    ]


class DosInfo(ct.BigEndianStructure):
    _fields_ = [
        ("di_McName", BPTR),
        ("di_DevInfo", BPTR),
    ]


class DeviceNode(ct.BigEndianStructure):
    _fields_ = [
        ("dn_Next", BPTR),
        ("dn_Type", ULONG),
        ("dn_Task", APTR),
        ("dn_Lock", BPTR),
        ("dn_Handler", BSTR),
        ("dn_StackSize", ULONG),
        ("dn_Priority", LONG),
        ("dn_Startup", BPTR),
        ("dn_SegList", BPTR),
        ("dn_GlobalVec", LONG),
        ("dn_Name", BSTR),
    ]


class VolumeNode(ct.BigEndianStructure):
    _fields_ = [
        ("dl_Next", BPTR),
        ("dl_Type", ULONG),
        ("dl_Task", APTR),
        ("dl_Lock", BPTR),
        ("dol_VolumeDate", LONG * 3),
        ("dol_LockList", BPTR),
        ("dol_DiskType", LONG),
        ("dol_unused", LONG),
        ("dl_Name", BSTR),
    ]


class FileSysStartupMsg(ct.BigEndianStructure):
    _fields_ = [
        ("fssm_Unit", ULONG),
        ("fssm_Device", BSTR),
        ("fssm_Environ", BPTR),
        ("fssm_Flags", ULONG),
    ]


# (field, DosEnvec table index) in table order; de_TableSize is index 0.
ENVEC_FIELDS = (
    ("de_TableSize", 0),
    ("de_SizeBlock", 1),
    ("de_SecOrg", 2),
    ("de_Surfaces", 3),
    ("de_SectorPerBlock", 4),
    ("de_BlocksPerTrack", 5),
    ("de_Reserved", 6),
    ("de_PreAlloc", 7),
    ("de_Interleave", 8),
    ("de_LowCyl", 9),
    ("de_HighCyl", 10),
    ("de_NumBuffers", 11),
    ("de_BufMemType", 12),
    ("de_MaxTransfer", 13),
    ("de_Mask", 14),
    ("de_BootPri", 15),
    ("de_DosType", 16),
)


class DosEnvec(ct.BigEndianStructure):
    _fields_ = [
        ("de_TableSize", ULONG),
        ("de_SizeBlock", ULONG),
        ("de_SecOrg", ULONG),
        ("de_Surfaces", ULONG),
        ("de_SectorPerBlock", ULONG),
        ("de_BlocksPerTrack", ULONG),
        ("de_Reserved", ULONG),
        ("de_PreAlloc", ULONG),
        ("de_Interleave", ULONG),
        ("de_LowCyl", ULONG),
        ("de_HighCyl", ULONG),
        ("de_NumBuffers", ULONG),
        ("de_BufMemType", ULONG),
        ("de_MaxTransfer", ULONG),
        ("de_Mask", ULONG),
        ("de_BootPri", LONG),
        ("de_DosType", ULONG),
    ]


class InfoData(ct.BigEndianStructure):
    _fields_ = [
        ("id_NumSoftErrors", LONG),
        ("id_UnitNumber", LONG),
        ("id_DiskState", LONG),
        ("id_NumBlocks", LONG),
        ("id_NumBlocksUsed", LONG),
        ("id_BytesPerBlock", LONG),
        ("id_DiskType", LONG),
        ("id_VolumeNode", BPTR),
        ("id_InUse", LONG),
    ]


# Library node and DosLibrary offsets used when locating dos.library.
LN_SUCC = 0
LN_NAME = 10
DL_ROOT = 34
