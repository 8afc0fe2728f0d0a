import pytest

from flight_scraper.models import FlightOption

RESULTS_PAGE = """
<html>
<body>
  <div class="banner"><span class="gOatQ">Prices are currently low for your search</span></div>

  <div jsname="IWWDBc">
    <ul class="Rk10dc">
      <li>
        <div class="sSHqwe tPgKwe ogfYpf"><span>Delta</span></div>
        <span class="mv1WYe"><div>8:00
            AM</div><div>4:30 PM</div></span>
        <span class="bOzv6">+1</span>
        <div class="gvkrdb">8 hr 30 min</div>
        <div class="BbR8Ec"><span class="ogfYpf">Nonstop</span></div>
        <div class="YMlIz FpEdX"><span>$1,234</span></div>
        <a href="/travel/flights/booking?tfs=BEST123&amp;hl=en">Select</a>
      </li>
      <li>
        <div class="sSHqwe tPgKwe ogfYpf"><span>United</span></div>
        <span class="mv1WYe"><div>9:15 AM</div><div>7:45 PM</div></span>
        <div class="gvkrdb">10 hr 30 min</div>
        <div class="BbR8Ec"><span class="ogfYpf">1 stop</span></div>
        <div class="GsCCve">Often delayed by 30+ min</div>
        <div class="YMlIz FpEdX"><span>$980</span></div>
        <a data-tfs="TOKEN+/=">Details</a>
      </li>
    </ul>
  </div>

  <div jsname="YdtKid">
    <ul class="Rk10dc">
      <li>
        <div class="sSHqwe tPgKwe ogfYpf"><span>American</span></div>
        <span class="mv1WYe"><div>6:00 AM</div><div>11:10 PM</div></span>
        <div class="gvkrdb">14 hr 10 min</div>
        <div class="BbR8Ec"><span class="ogfYpf">2 stops</span></div>
        <div jsdata="abc;tfs=JSDATA42;xyz">more</div>
      </li>
      <li>
        <div class="sSHqwe tPgKwe ogfYpf"><span>JetBlue</span></div>
        <span class="mv1WYe"><div>1:00 PM</div><div>9:00 PM</div></span>
        <div class="gvkrdb">8 hr</div>
        <div class="BbR8Ec"><span class="ogfYpf">Nonstop</span></div>
        <div class="YMlIz FpEdX"><span>$450</span></div>
        <div jsaction="click:select('/travel/flights/booking?tfs=ACTION7&amp;curr=EUR')">go</div>
      </li>
      <li>
        <span class="mv1WYe"><div>2:00 PM</div><div>5:00 PM</div></span>
        <div class="YMlIz FpEdX"><span>$99</span></div>
      </li>
    </ul>
  </div>
</body>
</html>
"""


def make_flight(name="Delta", price="$200", duration="5 hr", stops=0, **kwargs) -> FlightOption:
    return FlightOption(
        name=name,
        departure=kwargs.pop("departure", "8:00 AM"),
        arrival=kwargs.pop("arrival", "1:00 PM"),
        duration=duration,
        stops=stops,
        price=price,
        **kwargs,
    )


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """Replays canned bodies or raises canned exceptions, one per call"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    async def get(self, url, headers):
        self.calls.append((url, headers))
        index = min(len(self.calls), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        return response

    async def aclose(self):
        self.closed = True


@pytest.fixture
def results_page() -> str:
    return RESULTS_PAGE


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
