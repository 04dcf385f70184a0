"""
Tizada 自动排料任务 - 核心模块

模块结构：
- config/     运行期配置与日志
- models/     数据模型定义
- composer/   SVG 合成（片段清洗/重复/固定画布）
- storage/    对象存储（S3）
- surface/    无头浏览器驱动远端排料页面
- pipeline/   流水线编排、收敛等待、结果发布
- handler     Lambda / 命令行入口
"""

__version__ = "0.1.0"
