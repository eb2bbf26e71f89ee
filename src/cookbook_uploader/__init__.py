# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Cookbook Uploader

Publishes cookbooks locked in a Berksfile lockfile, together with their
dependencies, to a remote cookbook store in dependency order.
"""

__version__ = "1.0.0"
