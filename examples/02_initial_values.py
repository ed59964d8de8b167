from ravel import Group, LoadConfig, SimulationState, VariableType

state = SimulationState(LoadConfig(seed=7))
model = Group("model")
sector = Group("sector", model)

state.add_variable("rate", scope=model, init="0.25")
state.add_variable("rate", scope=sector, init="0.5")
state.add_variable("base", scope=sector, init="2*iota(2,3)")
state.add_variable("scaled", scope=sector, init="3*:rate")
state.add_variable("identity", VariableType.stock, init="eye(3,3)")
state.add_variable("noise", VariableType.parameter, init="rand(4)")

state.reset()
for vid, variable in state.variables.items():
    print(vid, variable.value(state.arena))
