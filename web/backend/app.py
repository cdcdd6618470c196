"""
Round Robin 스케줄러 시뮬레이터 - FastAPI 백엔드
"""

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError
from dataclasses import asdict
from typing import List, Optional, Dict
import asyncio
import json
import logging
import sys
import os

# 상위 디렉토리의 모듈 import를 위한 경로 추가
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

import config
from core.errors import InvalidWorkload, TimerSetupFailure
from schedulers.round_robin import RoundRobinScheduler
from utils.input_parser import WORKLOADS

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Round Robin Scheduler Simulator",
    description="타이머 인터럽트 기반 Round Robin 시분할 스케줄러 시뮬레이터",
    version="1.0.0"
)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic 모델
class ProcessInput(BaseModel):
    name: str
    work_units: int


class SimulationRequest(BaseModel):
    processes: Optional[List[ProcessInput]] = None  # None이면 기본 워크로드
    quantum: int = Field(config.TIME_QUANTUM, gt=0)
    strict_preemption: bool = config.STRICT_PREEMPTION


class GanttEntry(BaseModel):
    pid: int
    start_time: int
    end_time: int
    state: str


class ProcessResult(BaseModel):
    pid: int
    name: str
    arrival_time: int
    burst_time: int
    completion_time: int
    turnaround_time: int
    waiting_time: int
    response_time: Optional[int]
    dispatch_count: int
    preempt_count: int


class DispatchEntry(BaseModel):
    pid: int
    time: int


class SimulationResult(BaseModel):
    algorithm: str
    gantt_chart: List[GanttEntry]
    dispatch_trace: List[DispatchEntry]
    processes: List[ProcessResult]
    statistics: Dict[str, float]
    event_log: List[str]


def to_workload(process_inputs: Optional[List[ProcessInput]]) -> List:
    """ProcessInput을 (이름, 작업량) 목록으로 변환"""
    if process_inputs is None:
        return list(WORKLOADS['default'])
    return [(p.name, p.work_units) for p in process_inputs]


def create_scheduler(request: SimulationRequest) -> RoundRobinScheduler:
    """요청으로 스케줄러 생성 (잘못된 워크로드는 400)"""
    try:
        return RoundRobinScheduler(to_workload(request.processes), time_slice=request.quantum,
                                   strict_preemption=request.strict_preemption)
    except InvalidWorkload as e:
        logger.warning("Rejected workload: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    except TimerSetupFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


def serialize_result(result: Dict) -> Dict:
    """스케줄러 결과를 JSON 직렬화 가능한 형태로 변환"""
    report = result['report']
    return {
        'algorithm': result['algorithm'],
        'gantt_chart': [
            {
                'pid': entry.pid,
                'start_time': entry.start_time,
                'end_time': entry.end_time,
                'state': entry.state.value
            }
            for entry in result['gantt_chart']
        ],
        'dispatch_trace': [{'pid': pid, 'time': time} for pid, time in result['dispatch_trace']],
        'processes': [asdict(row) for row in report.processes] if report else [],
        'statistics': result['statistics'],
        'event_log': result['event_log']
    }


@app.get("/")
async def root():
    return {"message": "Round Robin Scheduler Simulator API", "version": "1.0.0"}


@app.get("/workloads")
async def get_workloads():
    """내장 워크로드 목록 반환"""
    return {
        "workloads": [
            {
                "id": key,
                "processes": [{"name": name, "work_units": work} for name, work in workload]
            }
            for key, workload in WORKLOADS.items()
        ]
    }


@app.post("/simulate", response_model=SimulationResult)
async def simulate(request: SimulationRequest):
    """스케줄링 시뮬레이션 실행"""
    scheduler = create_scheduler(request)
    try:
        result = scheduler.run()
    except TimerSetupFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return serialize_result(result)


# WebSocket을 통한 실시간 시뮬레이션
class RealtimeSimulator:
    def __init__(self, scheduler: RoundRobinScheduler):
        self.scheduler = scheduler
        self.is_complete = False
        self.last_gantt_index = 0
        self.last_log_index = 0

    def step(self) -> Dict:
        """한 스텝 실행 및 상태 반환"""
        if self.is_complete:
            return {'complete': True}

        is_complete = self.scheduler.execute_one_step()

        # 새로운 Gantt 엔트리
        new_gantt = [
            {
                'pid': entry.pid,
                'start_time': entry.start_time,
                'end_time': entry.end_time,
                'state': entry.state.value
            }
            for entry in self.scheduler.gantt_chart[self.last_gantt_index:]
        ]
        self.last_gantt_index = len(self.scheduler.gantt_chart)

        # 새로운 로그
        new_logs = self.scheduler.event_log[self.last_log_index:]
        self.last_log_index = len(self.scheduler.event_log)

        response = {
            'complete': is_complete,
            'snapshot': self.scheduler.get_current_snapshot(),
            'new_gantt': new_gantt,
            'new_logs': new_logs,
        }

        if is_complete:
            self.is_complete = True
            response['final'] = serialize_result(self.scheduler.get_results())

        return response


@app.websocket("/ws/realtime")
async def websocket_realtime(websocket: WebSocket):
    """실시간 시뮬레이션 WebSocket 엔드포인트"""
    await websocket.accept()
    simulator = None

    async def send_error(message: str):
        await websocket.send_json({'type': 'error', 'message': message})

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError as e:
                await send_error(f"invalid JSON: {e}")
                continue
            if not isinstance(message, dict):
                await send_error("message must be a JSON object")
                continue

            action = message.get('action')

            if action == 'init':
                payload = message.get('request', {})
                if not isinstance(payload, dict):
                    await send_error("'request' must be a JSON object")
                    continue
                try:
                    request = SimulationRequest(**payload)
                    scheduler = create_scheduler(request)
                except ValidationError as e:
                    await send_error(str(e))
                    continue
                except HTTPException as e:
                    await send_error(e.detail)
                    continue
                simulator = RealtimeSimulator(scheduler)

                await websocket.send_json({
                    'type': 'initialized',
                    'algorithm': scheduler.name,
                    'process_count': len(scheduler.table),
                    'snapshot': scheduler.get_current_snapshot()
                })

            elif action in ('step', 'run') and simulator is None:
                await send_error("not initialized")

            elif action == 'step':
                result = simulator.step()
                await websocket.send_json({
                    'type': 'step_result',
                    **result
                })

            elif action == 'run':
                # 자동 실행 (속도 조절 가능)
                speed = message.get('speed', 1.0)
                if isinstance(speed, bool) or not isinstance(speed, (int, float)) or speed <= 0:
                    await send_error(f"'speed' must be a positive number: {speed!r}")
                    continue
                delay = 1.0 / max(speed, 0.01)

                while not simulator.is_complete:
                    result = simulator.step()
                    await websocket.send_json({
                        'type': 'step_result',
                        **result
                    })

                    if result['complete']:
                        break

                    await asyncio.sleep(delay)

            else:
                await send_error(f"unknown action: {action}")

    except WebSocketDisconnect:
        logger.debug("realtime client disconnected")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
