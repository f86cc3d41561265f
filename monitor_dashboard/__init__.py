"""
Monitor Dashboard - 监控看板客户端

负责：
- 每秒并发拉取 Agent 实时状态与告警历史
- 维护两个独立的视图状态槽（失败保留旧值，空响应清空）
- 提供 HTML 看板与 JSON 接口
"""

__version__ = "1.0.0"
__author__ = "AI-C"
