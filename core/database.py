#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Tracker Core - Habit Database
Локальное JSON-хранилище привычек с атомарной записью и резервным копированием

Версия: 1.0.0
"""

import json
import asyncio
import threading
import shutil
import gzip
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any, Sequence
from concurrent.futures import ThreadPoolExecutor
import logging

from core.models import Habit, ValidationError

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class PersistenceError(Exception):
    """Ошибка чтения или записи хранилища"""
    pass

class StorageCorruptionError(PersistenceError):
    """Файл хранилища поврежден"""
    pass

# ===== HELPER CLASSES =====

class BackupManager:
    """Менеджер резервных копий"""

    def __init__(self, backup_dir: Path, max_backups: int = 10):
        self.backup_dir = Path(backup_dir)
        self.max_backups = max_backups
        self._counter = 0

    def create_backup(self, source_file: Path) -> Optional[Path]:
        """Создать сжатую резервную копию"""
        try:
            if not source_file.exists():
                logger.debug(f"Source file {source_file} does not exist for backup")
                return None

            self.backup_dir.mkdir(parents=True, exist_ok=True)
            self._counter += 1
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
            backup_path = self.backup_dir / f"backup_{timestamp}_{self._counter:04d}.json.gz"

            with open(source_file, 'rb') as f_in:
                with gzip.open(backup_path, 'wb') as f_out:
                    shutil.copyfileobj(f_in, f_out)

            logger.debug(f"Backup created: {backup_path}")
            self._cleanup_old_backups()
            return backup_path

        except OSError as e:
            logger.error(f"Failed to create backup: {e}")
            return None

    def read_backup(self, backup_path: Path) -> Any:
        """Прочитать содержимое резервной копии"""
        with gzip.open(backup_path, 'rt', encoding='utf-8') as f:
            return json.load(f)

    def list_backups(self) -> List[Path]:
        """Резервные копии, самые свежие первыми"""
        if not self.backup_dir.exists():
            return []
        return sorted(self.backup_dir.glob("backup_*.json.gz"), key=lambda p: p.name, reverse=True)

    def _cleanup_old_backups(self) -> None:
        """Удалить старые резервные копии"""
        for backup in self.list_backups()[self.max_backups:]:
            try:
                backup.unlink()
                logger.debug(f"Removed old backup: {backup}")
            except OSError as e:
                logger.warning(f"Failed to remove old backup {backup}: {e}")

class HabitDatabase:
    """
    Адаптер хранения коллекции привычек.

    Вся коллекция хранится одним JSON-массивом и перезаписывается целиком.
    Файловые операции выполняются в пуле потоков, записи сериализуются
    через asyncio.Lock.
    """

    def __init__(self, data_file: Path, backup_dir: Optional[Path] = None,
                 max_backups: int = 10, max_workers: int = 2):
        self.data_file = Path(data_file)
        self.backup_manager = BackupManager(backup_dir, max_backups) if backup_dir and max_backups > 0 else None

        self.file_lock = threading.RLock()
        self.save_lock = asyncio.Lock()
        self.executor = ThreadPoolExecutor(max_workers=max_workers)

        self.save_count = 0
        self.load_count = 0
        self.error_count = 0
        self.last_save: Optional[str] = None

    # ===== SYNC I/O =====

    def _read_file_sync(self) -> Any:
        with self.file_lock:
            with open(self.data_file, 'r', encoding='utf-8') as f:
                return json.load(f)

    def _parse_habits(self, data: Any) -> List[Habit]:
        if not isinstance(data, list):
            raise StorageCorruptionError(f"Expected a JSON array, got {type(data).__name__}")

        habits: List[Habit] = []
        seen_ids = set()
        for item in data:
            try:
                habit = Habit.from_dict(item)
            except ValidationError as e:
                logger.warning(f"Skipping unreadable habit record: {e}")
                self.error_count += 1
                continue
            if habit.id in seen_ids:
                logger.warning(f"Skipping duplicate habit id {habit.id}")
                continue
            seen_ids.add(habit.id)
            habits.append(habit)
        return habits

    def _load_sync(self) -> List[Habit]:
        if not self.data_file.exists():
            logger.info("Habit storage does not exist, starting with empty collection")
            return []

        try:
            return self._parse_habits(self._read_file_sync())
        except (json.JSONDecodeError, StorageCorruptionError, UnicodeDecodeError) as e:
            logger.error(f"Habit storage is corrupted: {e}")
            return self._recover_from_backup()

    def _recover_from_backup(self) -> List[Habit]:
        """Восстановление из последней читаемой резервной копии"""
        if not self.backup_manager:
            logger.warning("No backups configured, starting with empty collection")
            return []

        for backup_path in self.backup_manager.list_backups():
            try:
                habits = self._parse_habits(self.backup_manager.read_backup(backup_path))
                logger.info(f"Recovered {len(habits)} habits from backup {backup_path.name}")
                return habits
            except (OSError, json.JSONDecodeError, StorageCorruptionError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to restore from backup {backup_path.name}: {e}")

        logger.warning("Could not restore from any backup, starting with empty collection")
        return []

    def _save_sync(self, data: List[Dict[str, Any]]) -> None:
        """Синхронное атомарное сохранение"""
        with self.file_lock:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.data_file.with_suffix('.tmp')

            try:
                with open(temp_file, 'w', encoding='utf-8') as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)

                if self.backup_manager and self.data_file.exists():
                    self.backup_manager.create_backup(self.data_file)

                temp_file.replace(self.data_file)

                self.save_count += 1
                self.last_save = datetime.now().isoformat()

            except Exception:
                # Очищаем временный файл в случае ошибки
                if temp_file.exists():
                    temp_file.unlink()
                raise

    def _clear_sync(self) -> None:
        with self.file_lock:
            if self.data_file.exists():
                if self.backup_manager:
                    self.backup_manager.create_backup(self.data_file)
                self.data_file.unlink()

    # ===== PUBLIC API =====

    async def load(self) -> List[Habit]:
        """Загрузить коллекцию; при отсутствии или повреждении - пустой список"""
        try:
            habits = await asyncio.get_running_loop().run_in_executor(self.executor, self._load_sync)
        except Exception as e:
            logger.error(f"Failed to load habits: {e}")
            self.error_count += 1
            return []

        self.load_count += 1
        logger.info(f"Loaded {len(habits)} habits from {self.data_file}")
        return habits

    async def save(self, habits: Sequence[Habit]) -> None:
        """Перезаписать хранилище всей коллекцией"""
        data = [habit.to_dict() for habit in habits]

        try:
            async with self.save_lock:
                await asyncio.get_running_loop().run_in_executor(self.executor, self._save_sync, data)
        except Exception as e:
            logger.error(f"Failed to save habits: {e}")
            self.error_count += 1
            raise PersistenceError(f"Failed to save habits: {e}") from e

        logger.debug(f"Saved {len(data)} habits")

    async def clear(self) -> None:
        """Удалить сохраненную коллекцию"""
        try:
            async with self.save_lock:
                await asyncio.get_running_loop().run_in_executor(self.executor, self._clear_sync)
        except Exception as e:
            logger.error(f"Failed to clear habits: {e}")
            self.error_count += 1
            raise PersistenceError(f"Failed to clear habits: {e}") from e

        logger.info("Habit storage cleared")

    def get_stats(self) -> Dict[str, Any]:
        """Статистика хранилища"""
        size_mb = 0.0
        if self.data_file.exists():
            size_mb = self.data_file.stat().st_size / (1024 * 1024)

        return {
            'data_file': str(self.data_file),
            'size_mb': round(size_mb, 4),
            'save_count': self.save_count,
            'load_count': self.load_count,
            'error_count': self.error_count,
            'last_save': self.last_save,
            'backups': len(self.backup_manager.list_backups()) if self.backup_manager else 0
        }

    def close(self) -> None:
        """Освободить пул потоков (блокирующий вызов)"""
        self.executor.shutdown(wait=True)

    async def aclose(self) -> None:
        """Дождаться текущих операций и освободить пул, не блокируя event loop"""
        await asyncio.get_running_loop().run_in_executor(None, self.close)
        logger.debug("Habit database executor closed")
