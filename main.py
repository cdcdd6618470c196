#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Round Robin 시분할 스케줄러 시뮬레이터 - 메인 실행 파일

사용법:
    python main.py                          # 기본 워크로드, 협력형 타이머
    python main.py -q 1 --status            # 퀀텀 1, 상태 전이마다 표 출력
    python main.py --input data/work.csv --chart
    python main.py --timer thread --interval-ms 500 --unit-ms 100
"""

import argparse
import logging
import os
import sys
from typing import Dict, List, Optional

import config
from core.errors import InvalidWorkload, TimerSetupFailure
from core.timer import TIMER_MODES, create_timer
from schedulers.round_robin import RoundRobinScheduler
from utils.input_parser import InputParser, WORKLOADS
from utils.visualization import Visualizer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Round Robin 시분할 스케줄러 시뮬레이터')
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--input', metavar='FILE', help='워크로드 CSV 파일 (이름,작업량)')
    source.add_argument('--workload', choices=sorted(WORKLOADS), default='default',
                        help='내장 워크로드 (기본값: default)')
    source.add_argument('--random', type=int, metavar='N', help='N개의 랜덤 프로세스 생성')
    parser.add_argument('--seed', type=int, default=None, help='랜덤 워크로드 시드')
    parser.add_argument('-q', '--quantum', type=int, default=config.TIME_QUANTUM,
                        help=f'타임 퀀텀 (작업 단위, 기본값: {config.TIME_QUANTUM})')
    parser.add_argument('--strict', action='store_true', default=config.STRICT_PREEMPTION,
                        help='고정 주기 타이머 (디스패치 시 퀀텀을 재시작하지 않음)')
    parser.add_argument('--timer', choices=TIMER_MODES, default=config.TIMER_MODE,
                        help=f'타이머 모드 (기본값: {config.TIMER_MODE})')
    parser.add_argument('--interval-ms', type=float, default=None,
                        help='실시간 모드의 인터럽트 주기 (밀리초, 기본값: 퀀텀 기준 자동)')
    parser.add_argument('--unit-ms', type=float, default=config.WORK_UNIT_MS,
                        help=f'실시간 모드의 작업 단위 시간 (밀리초, 기본값: {config.WORK_UNIT_MS})')
    parser.add_argument('--status', action='store_true', help='상태 전이마다 프로세스 표 출력')
    parser.add_argument('--chart', action='store_true', help='Gantt 차트와 결과 파일 저장')
    parser.add_argument('--output-dir', default=config.OUTPUT_DIR, help='결과 저장 디렉토리')
    parser.add_argument('-v', '--verbose', action='store_true', help='이벤트 로그 출력')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='로깅 레벨')
    return parser


def load_workload(args) -> List:
    """옵션에 따라 워크로드 로드"""
    if args.input:
        print(f"\n'{args.input}'에서 워크로드 로딩 중...")
        return InputParser.parse_file(args.input)
    if args.random is not None:
        print(f"\n[정보] 랜덤 프로세스 {args.random}개 생성 중...")
        return InputParser.generate_random_workload(args.random, seed=args.seed)
    return InputParser.get_workload(args.workload)


def create_scheduler(workload, args) -> RoundRobinScheduler:
    """옵션에 따라 타이머와 스케줄러 생성"""
    interval = args.interval_ms / 1000 if args.interval_ms is not None else None
    timer = create_timer(args.timer, args.quantum, periodic=args.strict,
                         interval=interval, unit_duration=args.unit_ms / 1000)
    return RoundRobinScheduler(workload, timer=timer)


def save_results(result: Dict, output_dir: str = config.OUTPUT_DIR):
    """Gantt 차트와 상세 결과 저장"""
    os.makedirs(output_dir, exist_ok=True)

    visualizer = Visualizer()
    names = {p.pid: p.name for p in result['processes']}
    chart_path = os.path.join(output_dir, "gantt_round_robin.png")
    visualizer.draw_gantt_chart(result['gantt_chart'], result['algorithm'],
                                names=names, save_path=chart_path, show=False)

    results_file = os.path.join(output_dir, "results.txt")
    save_results_to_file(result, results_file)


def save_results_to_file(result: Dict, filename: str):
    """결과를 텍스트 파일로 저장"""
    with open(filename, 'w', encoding='utf-8') as f:
        f.write("="*90 + "\n")
        f.write(f"Round Robin 시뮬레이션 결과 - {result['algorithm']}\n")
        f.write("="*90 + "\n\n")

        stats = result['statistics']
        f.write(f"평균 대기 시간: {stats['avg_waiting_time']:.2f}\n")
        f.write(f"평균 반환 시간: {stats['avg_turnaround_time']:.2f}\n")
        f.write(f"평균 응답 시간: {stats['avg_response_time']:.2f}\n")
        f.write(f"CPU 이용률(%): {stats['cpu_utilization']:.2f}\n")
        f.write(f"문맥 교환: {stats['context_switches']}   선점: {stats['preemptions']}\n\n")

        f.write(f"{'PID':<6} {'이름':<14} {'버스트':>8} {'완료':>8} {'반환':>8} {'대기':>8}\n")
        f.write("-"*60 + "\n")
        for p in result['processes']:
            f.write(f"{p.pid:<6} {p.name:<14} {p.burst_time:>8} {p.completion_time:>8} "
                    f"{p.turnaround_time:>8} {p.waiting_time:>8}\n")

        f.write("\n디스패치 순서:\n")
        f.write(", ".join(f"P{pid}@{time}" for pid, time in result['dispatch_trace']) + "\n")

    print(f"[완료] 결과가 {filename}에 저장되었습니다")


def main(argv: Optional[List[str]] = None) -> int:
    """메인 함수"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=config.LOG_FORMAT)

    print("\n" + "="*60)
    print(" "*10 + "Round Robin 시분할 스케줄러 시뮬레이터")
    print("="*60)

    try:
        workload = load_workload(args)
        scheduler = create_scheduler(workload, args)
    except InvalidWorkload as e:
        logger.warning("Rejected workload: %s", e)
        print(f"[오류] 잘못된 워크로드: {e}")
        return 1
    except TimerSetupFailure as e:
        print(f"[오류] 타이머 설정 실패: {e}")
        return 1

    print(f"타임 퀀텀: {scheduler.time_slice}   타이머: {args.timer}"
          f"{' (strict)' if args.strict else ''}   프로세스: {len(scheduler.table)}개")

    visualizer = Visualizer()
    if args.status:
        scheduler.add_listener(visualizer.print_status_table)

    try:
        result = scheduler.run(verbose=args.verbose)
    except TimerSetupFailure as e:
        print(f"[오류] 타이머 설정 실패: {e}")
        return 1

    print("\n*** ALL PROCESSES COMPLETED ***")
    visualizer.print_final_report(result['report'], result['algorithm'])

    if args.chart:
        save_results(result, args.output_dir)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\n사용자에 의해 시뮬레이션이 중단되었습니다.")
        print("="*60 + "\n")
        sys.exit(130)
