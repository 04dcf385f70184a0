"""
存储模块 - 对象存储客户端

子模块：
- s3_store: boto3 S3 实现
"""

from .s3_store import S3AssetStore, build_s3_client

__all__ = [
    "S3AssetStore",
    "build_s3_client",
]
