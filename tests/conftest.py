"""Pytest configuration and fixtures for redundancy audit tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from redundancy_audit.config import AuditConfig
from redundancy_audit.extractor import PatternServiceExtractor
from redundancy_audit.models import ServiceInfo


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_workspace_path() -> Path:
    """Get path to the sample TypeScript workspace."""
    return Path(__file__).parent / "fixtures" / "sample_workspace"


@pytest.fixture
def sample_config(sample_workspace_path: Path, temp_dir: Path) -> AuditConfig:
    """Audit configuration for the sample workspace, reports in a temp dir."""
    return AuditConfig(
        workspace_root=sample_workspace_path.resolve(),
        reports_dir=str(temp_dir / "reports"),
    )


@pytest.fixture
def extractor() -> PatternServiceExtractor:
    return PatternServiceExtractor()


@pytest.fixture
def make_service(extractor: PatternServiceExtractor) -> Callable[..., ServiceInfo]:
    """Build a ServiceInfo from TypeScript source without touching disk."""

    def _make(source: str, path: str = "/ws/apps/admin/lib/services/x.service.ts", group: str = "admin") -> ServiceInfo:
        service = extractor.extract(Path(path), source, group)
        assert service is not None, "source does not declare a service class"
        return service

    return _make


@pytest.fixture
def sample_service_code() -> str:
    """Sample TypeScript service for testing the extractor."""
    return '''import { Injectable } from '@nestjs/common';
import { CacheClient } from '../cache/cache.client';
import type { Store } from './types';

export interface StoreFilter {
  region?: string;
}

export const DEFAULT_LIMIT = 25;

@Injectable()
export class StoreLookupService {
  constructor(
    private readonly cache: CacheClient,
    public repo: StoreRepository,
    plain: string,
  ) {}

  async findStores(filter: StoreFilter, limit: number = 10): Promise<Store[]> {
    if (filter.region && limit > 0) {
      return this.repo.find({ region: filter.region }, limit);
    }
    return [];
  }

  countOpen(stores: Store[], at?: Date): number {
    let open = 0;
    for (const s of stores) {
      open += s.isOpen(at) ? 1 : 0;
    }
    return open;
  }

  private key(id: string, options: { ttl: number, tags: string[] }): string {
    return `${id}:${options.ttl}`;
  }
}
'''
