# app/api/auto_router.py
import importlib
import logging
from fastapi import FastAPI, APIRouter
from pathlib import Path

logger = logging.getLogger(__name__)

# 项目根目录 (包含 app/ 的目录)
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def discover_and_include_routers(app: FastAPI, base_dir: str = "app/modules"):
    """
    自动发现并包含指定目录下各模块的 API 路由器。

    目录约定: <base_dir>/<模块组>/<模块>/router.py，模块组和模块目录都需要 __init__.py，
    router.py 中需定义名为 router 的 APIRouter。

    Args:
        app (FastAPI): FastAPI 应用实例。
        base_dir (str): 包含模块的根目录路径 (相对于项目根目录)。
    """
    logger.info(f"开始自动发现路由器，基础目录: '{base_dir}'")
    modules_path = PROJECT_ROOT / base_dir
    if not modules_path.is_dir():
        logger.warning(f"自动发现路由器的基础目录 '{modules_path}' 不存在或不是目录。")
        return

    included = 0
    # 遍历 base_dir 下的模块组 (如 'store')，排序保证路由注册顺序稳定
    for group_dir in sorted(modules_path.iterdir()):
        if not (group_dir.is_dir() and (group_dir / '__init__.py').exists()):
            continue
        for module_dir in sorted(group_dir.iterdir()):
            if not (module_dir.is_dir() and (module_dir / 'router.py').exists()):
                continue
            if not (module_dir / '__init__.py').exists():
                logger.warning(f"目录 '{module_dir}' 包含 router.py 但缺少 __init__.py，无法作为模块导入。")
                continue

            router_module_path = f"{base_dir.replace('/', '.')}.{group_dir.name}.{module_dir.name}.router"
            try:
                router_module = importlib.import_module(router_module_path)
            except ImportError as e:
                logger.error(f"导入路由器模块 '{router_module_path}' 失败: {e}", exc_info=True)
                continue

            module_router = getattr(router_module, 'router', None)
            if not isinstance(module_router, APIRouter):
                logger.warning(f"在模块 '{router_module_path}' 中未找到名为 'router' 的 APIRouter 实例。")
                continue

            # 统一添加 /api 前缀，模块自身前缀在 router.py 中定义
            app.include_router(module_router, prefix="/api")
            included += 1
            logger.info(f"已自动包含路由器: '{router_module_path}' -> Prefix: '/api{module_router.prefix}'")

    logger.info(f"路由器自动发现完成，共包含 {included} 个路由器。")
