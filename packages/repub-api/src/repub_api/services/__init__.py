# SPDX-License-Identifier: MIT
"""Publish workflow and package read path."""

from .pending import PendingUpload, PendingUploadStore
from .publish import PublishResult, PublishWorkflow

__all__ = ["PendingUpload", "PendingUploadStore", "PublishResult", "PublishWorkflow"]
