# src/dosdev_tool/help_text.py

from ._version import get_version as get_local_version


def print_help():
    """
    Prints the help text (man page style) with the resolved version.
    """
    tool_ver = get_local_version()

    header = "CHECKDOSDEVICE(1)                 User Commands                 CHECKDOSDEVICE(1)"
    footer = f"\nVERSION\n       v{tool_ver}"

    help_text = rf"""{header}

NAME
       checkdosdevice - check whether a DOS device has a mounted volume

SYNOPSIS
       checkdosdevice DEVICE [-q] [-d DRIVER] [--info | --config]
                      [--snapshot FILE | --dump FILE] [--debug]

DESCRIPTION
       Looks DEVICE up in the DOS device list and reports whether it exists
       and whether a disk is present. Useful for checking diskimage.device
       units before mounting an image.

       DEVICE is a DOS device name (the trailing colon is optional), a unit
       number of DRIVER, or a name prefix ending in '*' to list every
       matching device with its state.

       Before anything else the driver is opened at unit 0; when that fails
       the command stops with FAIL.

OPTIONS
       -h, --help
              Show this help message and exit.

       -q, --quiet
              Print nothing; only the return code tells the result.

       -d DRIVER, --driver DRIVER
              Device driver for the availability check and for unit
              numbers. Default: diskimage.device, or $DOSDEV_DRIVER.

       --info
              Print every startup and geometry field of the device instead
              of the status line.

       --config
              Print a mountlist entry that recreates the device instead of
              the status line.

              With --info or --config a device that exists returns OK
              whether or not a disk is present.

       --snapshot FILE
              Read the device list from a JSON snapshot
              (default: $DOSDEV_SNAPSHOT).

       --dump FILE
              Read the device list from a raw memory dump starting at
              address 0 (default: $DOSDEV_DUMP).

       --debug
              Log the device list walk to stderr (also $DOSDEV_TOOL_DEBUG=1).

RETURN CODES
       0  (OK)     Device exists and has a volume mounted
       5  (WARN)   Device exists but no disk present (safe to mount)
       10 (ERROR)  Device doesn't exist, or bad arguments
       20 (FAIL)   Driver not available

EXAMPLES
       checkdosdevice IHD101
              Check the device IHD101:.

       checkdosdevice 101
              Find the diskimage.device unit 101 and check it.

       checkdosdevice 0 --driver trackdisk.device
              Check whichever device uses trackdisk.device unit 0.

       checkdosdevice DF0:
              The colon may be given.

       checkdosdevice 'IHD*'
              List every device whose name starts with IHD.

       checkdosdevice DH0 --config >> DEVS:MountList
              Append a mountlist entry for DH0.
"""

    print(help_text + footer)
