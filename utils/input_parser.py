"""
입력 데이터 파서 및 워크로드 생성 모듈
"""

import csv
import logging
import random
from typing import List, Optional, Tuple

import config
from core.errors import InvalidWorkload
from core.process import validate_workload

logger = logging.getLogger(__name__)

Workload = List[Tuple[str, int]]

# 기본 워크로드 (모두 도착 시간 0)
DEFAULT_WORKLOAD: Workload = [
    ("Calculator", 3),
    ("TextEditor", 5),
    ("Compiler", 7),
    ("Browser", 4),
]

# 고전적인 예제 워크로드
CLASSIC_WORKLOAD: Workload = [
    ("Process-A", 8),
    ("Process-B", 6),
    ("Process-C", 4),
    ("Process-D", 10),
]

WORKLOADS = {
    'default': DEFAULT_WORKLOAD,
    'classic': CLASSIC_WORKLOAD,
}


class InputParser:
    """입력 파일 파서"""

    @staticmethod
    def parse_file(filename: str) -> Workload:
        """
        CSV 파일에서 워크로드 읽기

        파일 형식: 이름,작업량
        예: Calculator,3

        Args:
            filename: 입력 파일 경로

        Returns:
            (이름, 작업량) 리스트

        Raises:
            InvalidWorkload: 파일이 없거나, 형식이 잘못되었거나, 워크로드가 비어있는 경우
        """
        workload: Workload = []

        try:
            with open(filename, 'r', encoding='utf-8', newline='') as f:
                for line_no, row in enumerate(csv.reader(f), 1):
                    # 주석 및 빈 줄 제거
                    if not row or not ''.join(row).strip() or row[0].strip().startswith('#'):
                        continue
                    workload.append(InputParser._parse_row(row, line_no))
        except FileNotFoundError:
            raise InvalidWorkload(f"파일 '{filename}'을 찾을 수 없습니다") from None
        except UnicodeDecodeError as e:
            raise InvalidWorkload(f"파일 '{filename}'을 읽을 수 없습니다: {e}") from e

        validate_workload(workload)
        logger.info("Loaded %d processes from %s", len(workload), filename)
        return workload

    @staticmethod
    def _parse_row(row: List[str], line_no: int) -> Tuple[str, int]:
        """CSV 한 줄을 (이름, 작업량)으로 변환"""
        if len(row) != 2:
            raise InvalidWorkload(f"{line_no}번째 줄: 2개 필드(이름,작업량)가 필요하지만 {len(row)}개가 있습니다")

        name = row[0].strip()
        try:
            work_units = int(row[1].strip())
        except ValueError:
            raise InvalidWorkload(f"{line_no}번째 줄: 작업량은 정수여야 합니다: {row[1].strip()!r}") from None

        if not name:
            raise InvalidWorkload(f"{line_no}번째 줄: 프로세스 이름이 비어있습니다")
        if work_units <= 0:
            raise InvalidWorkload(f"{line_no}번째 줄: 작업량은 양수여야 합니다: {work_units}")
        return name, work_units

    @staticmethod
    def get_workload(name: str) -> Workload:
        """이름으로 내장 워크로드 조회"""
        try:
            return list(WORKLOADS[name])
        except KeyError:
            raise InvalidWorkload(f"알 수 없는 워크로드: {name} (가능: {', '.join(WORKLOADS)})") from None

    @staticmethod
    def generate_random_workload(num_processes: int = 5,
                                 max_work: int = 10,
                                 seed: Optional[int] = None) -> Workload:
        """
        랜덤 워크로드 생성

        Args:
            num_processes: 생성할 프로세스 수
            max_work: 최대 작업량
            seed: 랜덤 시드
        """
        if not 0 < num_processes <= config.MAX_PROCESS_COUNT:
            raise InvalidWorkload(f"프로세스 수는 1~{config.MAX_PROCESS_COUNT} 사이여야 합니다: {num_processes}")
        if max_work <= 0:
            raise InvalidWorkload(f"최대 작업량은 양수여야 합니다: {max_work}")

        rng = random.Random(seed)
        return [(f"Process-{i}", rng.randint(1, max_work)) for i in range(1, num_processes + 1)]

    @staticmethod
    def save_workload_to_file(workload: Workload, filename: str):
        """
        워크로드를 파일로 저장

        Args:
            workload: 저장할 워크로드
            filename: 출력 파일 경로
        """
        validate_workload(workload)
        with open(filename, 'w', encoding='utf-8', newline='') as f:
            f.write("# Round-Robin Simulator Workload\n")
            f.write("# Format: Name,WorkUnits\n")
            writer = csv.writer(f)
            for name, work_units in workload:
                writer.writerow([name, work_units])

        logger.info("Saved %d processes to %s", len(workload), filename)
