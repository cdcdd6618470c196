"""
시각화 모듈: Gantt Chart 및 상태/결과 표 출력
"""

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from typing import Dict, List, Optional

from core.metrics import FinalReport
from core.scheduler_base import GanttEntry


class Visualizer:
    """스케줄링 결과 시각화"""

    def __init__(self):
        # 프로세스별 색상 설정
        self.colors = plt.cm.Set3.colors

    def draw_gantt_chart(self, gantt_data: List[GanttEntry], algorithm_name: str,
                         names: Optional[Dict[int, str]] = None,
                         save_path: str = None, show: bool = False) -> bool:
        """
        Gantt Chart 그리기

        Args:
            gantt_data: Gantt Chart 데이터
            algorithm_name: 알고리즘 이름
            names: PID → 프로세스 이름 (y축 라벨용)
            save_path: 저장 경로 (None이면 저장 안 함)
            show: 화면에 표시할지 여부

        Returns:
            차트를 그렸는지 여부
        """
        if not gantt_data:
            print(f"{algorithm_name}에 대한 Gantt 차트 데이터가 없습니다")
            return False

        names = names or {}
        fig, ax = plt.subplots(figsize=(16, 6))

        unique_pids = sorted(set(entry.pid for entry in gantt_data))
        pid_to_y = {pid: idx for idx, pid in enumerate(unique_pids)}

        for entry in gantt_data:
            duration = entry.end_time - entry.start_time
            y_pos = pid_to_y[entry.pid]
            color = self.colors[entry.pid % len(self.colors)]

            ax.barh(y_pos, duration, left=entry.start_time, height=0.8,
                    color=color, edgecolor='black', linewidth=0.5)

            # 프로세스 ID 표시
            if duration > 1:  # 충분히 긴 경우만 텍스트 표시
                ax.text(entry.start_time + duration/2, y_pos, f'P{entry.pid}',
                        ha='center', va='center', fontsize=8, fontweight='bold')

        # 축 설정
        ax.set_yticks(range(len(unique_pids)))
        ax.set_yticklabels([f"P{pid} {names.get(pid, '')}".strip() for pid in unique_pids])
        ax.set_xlabel('Time (ticks)', fontsize=12)
        ax.set_ylabel('Process', fontsize=12)
        ax.set_title(f'Gantt Chart - {algorithm_name}', fontsize=14, fontweight='bold')
        ax.grid(axis='x', alpha=0.3)
        ax.legend(handles=[mpatches.Patch(color=self.colors[0], label='Running')], loc='upper right')

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')
            print(f"Gantt 차트가 {save_path}에 저장되었습니다")

        if show:
            plt.show()
        else:
            plt.close(fig)
        return True

    def print_status_table(self, snapshot: Dict):
        """
        상태 피드 스냅샷을 표 형식으로 출력

        Args:
            snapshot: BaseScheduler.get_current_snapshot() 결과
        """
        print(f"\n{'='*56}")
        print(f"Time: {snapshot['time']}   Phase: {snapshot['phase']}")
        print(f"{'='*56}")
        print(f"{'PID':>3} | {'Name':<14} | {'State':<10} | {'Progress':>9}")
        print(f"{'-'*56}")

        for p in snapshot['processes']:
            progress = f"{p['work_done']}/{p['work_total']}"
            print(f"{p['pid']:>3} | {p['name']:<14} | {p['state']:<10} | {progress:>9}")

        print(f"{'='*56}\n")

    def print_final_report(self, report: FinalReport, algorithm_name: str = ""):
        """
        최종 성능 지표 출력

        Args:
            report: MetricsReporter가 만든 최종 리포트
            algorithm_name: 알고리즘 이름
        """
        print(f"\n{'='*90}")
        print(f"최종 성능 지표 {('- ' + algorithm_name) if algorithm_name else ''}")
        print(f"{'='*90}")
        print(f"{'PID':>3} | {'Name':<14} | {'Arrival':>7} | {'Burst':>5} | {'Completion':>10} | "
              f"{'Turnaround':>10} | {'Waiting':>7} | {'Response':>8}")
        print(f"{'-'*90}")

        for row in report.processes:
            response = row.response_time if row.response_time is not None else 'N/A'
            print(f"{row.pid:>3} | {row.name:<14} | {row.arrival_time:>7} | {row.burst_time:>5} | "
                  f"{row.completion_time:>10} | {row.turnaround_time:>10} | "
                  f"{row.waiting_time:>7} | {response:>8}")

        print(f"{'='*90}")
        print(f"평균 대기 시간: {report.avg_waiting_time:.2f}")
        print(f"평균 반환 시간: {report.avg_turnaround_time:.2f}")
        print(f"평균 응답 시간: {report.avg_response_time:.2f}")
        print(f"CPU 이용률: {report.cpu_utilization:.2f}%   처리량: {report.throughput:.3f} / tick")
        print(f"{'='*90}\n")
